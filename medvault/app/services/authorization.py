"""Authorization ledger: one fixed administrator plus a grant flag per identity."""
from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..domain.errors import (
    AlreadyAuthorized,
    InvalidIdentity,
    LedgerAlreadyInitialized,
    NotAdministrator,
    NotAuthorizedYet,
)
from ..domain.identity import IdentityLike, canonical_identity, is_zero_identity
from ..domain.models import AuthorizationEntry, LedgerAdmin, NotificationKind, utcnow
from ..infra.db import acquire_ledger_lock
from ..logging_config import audit_log
from .notifications import NotificationLog


class AuthorizationLedger:
    """Grants and revokes technician access.

    The administrator is authorized by identity equality, never through an
    entry, so no revoke can remove it.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def initialize(self, admin: IdentityLike, network_id: Optional[int] = None) -> LedgerAdmin:
        admin_id = canonical_identity(admin)
        if is_zero_identity(admin_id):
            raise InvalidIdentity("Administrator cannot be the zero identity")
        acquire_ledger_lock(self.session)
        if self.session.get(LedgerAdmin, 1):
            raise LedgerAlreadyInitialized()

        record = LedgerAdmin(identity=admin_id, network_id=network_id)
        self.session.add(record)
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise LedgerAlreadyInitialized() from exc
        self.session.refresh(record)
        return record

    def administrator(self) -> Optional[str]:
        record = self.session.get(LedgerAdmin, 1)
        return record.identity if record else None

    def is_authorized(self, identity: IdentityLike) -> bool:
        try:
            identity_id = canonical_identity(identity)
        except InvalidIdentity:
            return False
        if identity_id == self.administrator():
            return True
        entry = self.session.get(AuthorizationEntry, identity_id)
        return bool(entry and entry.authorized)

    def grant(self, caller: IdentityLike, target: IdentityLike) -> AuthorizationEntry:
        acquire_ledger_lock(self.session)
        caller_id = self._require_admin(caller)
        target_id = canonical_identity(target)
        if is_zero_identity(target_id):
            raise InvalidIdentity("Cannot authorize the zero identity")
        if self.is_authorized(target_id):
            raise AlreadyAuthorized()

        entry = self.session.get(AuthorizationEntry, target_id)
        if entry is None:
            entry = AuthorizationEntry(identity=target_id, updated_by=caller_id)
        entry.authorized = True
        entry.updated_by = caller_id
        entry.updated_at = utcnow()
        self.session.add(entry)
        try:
            self.session.flush()
        except IntegrityError as exc:
            # a concurrent grant created the entry first
            raise AlreadyAuthorized() from exc

        NotificationLog(self.session).emit(
            NotificationKind.AUTHORIZATION_GRANTED, caller_id, target=target_id
        )
        self.session.refresh(entry)
        audit_log.authorization_change("grant", caller_id, target_id)
        return entry

    def revoke(self, caller: IdentityLike, target: IdentityLike) -> AuthorizationEntry:
        acquire_ledger_lock(self.session)
        caller_id = self._require_admin(caller)
        target_id = canonical_identity(target)
        entry = self.session.get(AuthorizationEntry, target_id)
        if entry is None or not entry.authorized:
            raise NotAuthorizedYet()

        entry.authorized = False
        entry.updated_by = caller_id
        entry.updated_at = utcnow()
        self.session.add(entry)

        NotificationLog(self.session).emit(
            NotificationKind.AUTHORIZATION_REVOKED, caller_id, target=target_id
        )
        self.session.flush()
        self.session.refresh(entry)
        audit_log.authorization_change("revoke", caller_id, target_id)
        return entry

    def list_entries(self) -> list[AuthorizationEntry]:
        stmt = select(AuthorizationEntry).order_by(AuthorizationEntry.identity)
        return list(self.session.exec(stmt).all())

    def _require_admin(self, caller: IdentityLike) -> str:
        caller_id = canonical_identity(caller)
        admin_id = self.administrator()
        if admin_id is None or caller_id != admin_id:
            raise NotAdministrator()
        return caller_id
