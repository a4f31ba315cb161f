"""Device record store.

Visible fields are public. The two ciphertext fields are opaque bytes that
only authorized identities may write or read; the store never parses them.
"""
from __future__ import annotations

from typing import Tuple

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from ..domain.errors import DuplicateId, EmptyCiphertext, RecordNotFound
from ..domain.identity import IdentityLike
from ..domain.models import (
    DeviceInfo,
    DevicePublicInfo,
    DeviceRecord,
    NotificationKind,
    utcnow,
)
from ..infra.db import acquire_ledger_lock
from ..logging_config import audit_log
from .access import AccessGate
from .notifications import NotificationLog


def _require_ciphertext(ciphertext_a: bytes, ciphertext_b: bytes) -> None:
    if not ciphertext_a or not ciphertext_b:
        raise EmptyCiphertext()


class RecordStore:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.gate = AccessGate(session)

    def register(
        self,
        caller: IdentityLike,
        record_id: str,
        info: DeviceInfo,
        ciphertext_a: bytes,
        ciphertext_b: bytes,
    ) -> DeviceRecord:
        acquire_ledger_lock(self.session)
        actor = self.gate.enforce(caller, "register", record_id)
        _require_ciphertext(ciphertext_a, ciphertext_b)
        if self.session.get(DeviceRecord, record_id):
            raise DuplicateId()

        now = utcnow()
        record = DeviceRecord(
            id=record_id,
            name=info.name,
            category=info.category,
            status=info.status,
            last_maintenance=info.last_maintenance,
            next_calibration=info.next_calibration,
            registered=True,
            encrypted_notes=bytes(ciphertext_a),
            encrypted_calibration=bytes(ciphertext_b),
            registered_by=actor,
            updated_by=actor,
            created_at=now,
            updated_at=now,
        )
        self.session.add(record)
        try:
            self.session.flush()
        except IntegrityError as exc:
            # lost a race with a concurrent register of the same id
            raise DuplicateId() from exc

        NotificationLog(self.session).emit(
            NotificationKind.RECORD_REGISTERED, actor, record_id=record_id, name=info.name
        )
        self.session.refresh(record)
        audit_log.record_change("register", actor, record_id)
        return record

    def update(
        self,
        caller: IdentityLike,
        record_id: str,
        info: DeviceInfo,
        ciphertext_a: bytes,
        ciphertext_b: bytes,
    ) -> DeviceRecord:
        acquire_ledger_lock(self.session)
        actor = self.gate.enforce(caller, "update", record_id)
        _require_ciphertext(ciphertext_a, ciphertext_b)
        record = self._get(record_id)

        now = utcnow()
        record.name = info.name
        record.category = info.category
        record.status = info.status
        record.last_maintenance = info.last_maintenance
        record.next_calibration = info.next_calibration
        record.encrypted_notes = bytes(ciphertext_a)
        record.encrypted_calibration = bytes(ciphertext_b)
        record.updated_by = actor
        record.updated_at = now
        self.session.add(record)

        NotificationLog(self.session).emit(
            NotificationKind.RECORD_UPDATED,
            actor,
            record_id=record_id,
            payload={"timestamp": now.isoformat()},
        )
        self.session.flush()
        self.session.refresh(record)
        audit_log.record_change("update", actor, record_id)
        return record

    def get_public_info(self, record_id: str) -> DevicePublicInfo:
        return DevicePublicInfo.model_validate(self._get(record_id))

    def get_ciphertext(self, caller: IdentityLike, record_id: str) -> Tuple[bytes, bytes]:
        self.gate.enforce(caller, "read_ciphertext", record_id)
        record = self._get(record_id)
        return bytes(record.encrypted_notes), bytes(record.encrypted_calibration)

    def _get(self, record_id: str) -> DeviceRecord:
        record = self.session.get(DeviceRecord, record_id)
        if record is None or not record.registered:
            raise RecordNotFound()
        return record
