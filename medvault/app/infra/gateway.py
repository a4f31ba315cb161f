"""In-process ledger gateway.

Implements the ledger collaborator interface (submit a transaction, read
state, query notifications) over the database. Every call is its own
transaction: it commits fully or rolls back fully. Submitted transactions
are applied one at a time, in the order they take the ledger lock.
"""
from __future__ import annotations

import logging
import threading
from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional

from sqlmodel import Session

from ..config import DISCOVERY_WINDOW
from ..domain.errors import UnknownOperation
from ..domain.identity import IdentityLike, canonical_identity
from ..domain.models import LedgerNotificationRead, NotificationKind, utcnow
from ..services.authorization import AuthorizationLedger
from ..services.discovery import discover_record_ids
from ..services.notifications import NotificationLog
from ..services.records import RecordStore
from .db import get_session

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractContextManager[Session]]

# one writer at a time per process; the database lock covers other processes
_submit_lock = threading.Lock()


class Operation(str, Enum):
    INITIALIZE = "initialize"
    GRANT = "grant"
    REVOKE = "revoke"
    REGISTER = "register"
    UPDATE = "update"


class StateQuery(str, Enum):
    ADMINISTRATOR = "administrator"
    IS_AUTHORIZED = "is_authorized"
    PUBLIC_INFO = "public_info"
    CIPHERTEXT = "ciphertext"


@dataclass(frozen=True)
class Confirmation:
    operation: Operation
    caller: str
    notification_seq: int
    confirmed_at: datetime


class LedgerGateway:
    def __init__(self, session_factory: SessionFactory = get_session) -> None:
        self.session_factory = session_factory

    def submit_transaction(self, caller: IdentityLike, operation: str, **args: Any) -> Confirmation:
        try:
            op = Operation(operation)
        except ValueError:
            raise UnknownOperation(f"Unknown ledger operation: {operation}") from None

        with _submit_lock, self.session_factory() as session:
            if op is Operation.INITIALIZE:
                AuthorizationLedger(session).initialize(caller, args.get("network_id"))
            elif op is Operation.GRANT:
                AuthorizationLedger(session).grant(caller, args["target"])
            elif op is Operation.REVOKE:
                AuthorizationLedger(session).revoke(caller, args["target"])
            elif op is Operation.REGISTER:
                RecordStore(session).register(
                    caller, args["record_id"], args["info"], args["ciphertext_a"], args["ciphertext_b"]
                )
            else:
                RecordStore(session).update(
                    caller, args["record_id"], args["info"], args["ciphertext_a"], args["ciphertext_b"]
                )
            seq = NotificationLog(session).latest_seq()

        caller_id = canonical_identity(caller)
        logger.info("confirmed %s from %s", op.value, caller_id)
        return Confirmation(
            operation=op,
            caller=caller_id,
            notification_seq=seq,
            confirmed_at=utcnow(),
        )

    def read_state(self, query: str, **args: Any) -> Any:
        try:
            q = StateQuery(query)
        except ValueError:
            raise UnknownOperation(f"Unknown state query: {query}") from None

        with self.session_factory() as session:
            if q is StateQuery.ADMINISTRATOR:
                return AuthorizationLedger(session).administrator()
            if q is StateQuery.IS_AUTHORIZED:
                return AuthorizationLedger(session).is_authorized(args["identity"])
            if q is StateQuery.PUBLIC_INFO:
                return RecordStore(session).get_public_info(args["record_id"])
            return RecordStore(session).get_ciphertext(args["caller"], args["record_id"])

    def query_notifications(
        self,
        kind: Optional[NotificationKind] = None,
        from_seq: Optional[int] = None,
        to_seq: Optional[int] = None,
    ) -> List[LedgerNotificationRead]:
        with self.session_factory() as session:
            return [
                LedgerNotificationRead.model_validate(n)
                for n in NotificationLog(session).query(kind, from_seq, to_seq)
            ]

    def discover_record_ids(
        self, manual_ids: Iterable[str] = (), window: int = DISCOVERY_WINDOW
    ) -> List[str]:
        with self.session_factory() as session:
            return discover_record_ids(session, window=window, manual_ids=manual_ids)
