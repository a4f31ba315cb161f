"""Notification log: append-only, hash-chained record of ledger changes."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from ..domain.chain import compute_chain_hash
from ..domain.models import LedgerNotification, NotificationKind, utcnow


def chain_payload(notification: LedgerNotification) -> Dict[str, Any]:
    return {
        "kind": notification.kind.value,
        "actor": notification.actor,
        "record_id": notification.record_id,
        "target": notification.target,
        "name": notification.name,
        "payload": notification.payload,
        "created_at": notification.created_at.isoformat(),
    }


class NotificationLog:
    """Notifications are written in the caller's transaction.

    A notification therefore exists exactly when the operation that emitted
    it committed.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def emit(
        self,
        kind: NotificationKind,
        actor: str,
        *,
        record_id: Optional[str] = None,
        target: Optional[str] = None,
        name: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> LedgerNotification:
        prev_hash = self._latest_hash()
        notification = LedgerNotification(
            kind=kind,
            actor=actor,
            record_id=record_id,
            target=target,
            name=name,
            payload=payload or {},
            prev_hash=prev_hash,
            created_at=utcnow(),
        )
        notification.curr_hash = compute_chain_hash(chain_payload(notification), prev_hash)

        self.session.add(notification)
        self.session.flush()
        self.session.refresh(notification)
        return notification

    def query(
        self,
        kind: Optional[NotificationKind] = None,
        from_seq: Optional[int] = None,
        to_seq: Optional[int] = None,
    ) -> List[LedgerNotification]:
        """Notifications with ``from_seq <= seq <= to_seq``, oldest first."""
        stmt = select(LedgerNotification).order_by(LedgerNotification.seq.asc())
        if kind is not None:
            stmt = stmt.where(LedgerNotification.kind == kind)
        if from_seq is not None:
            stmt = stmt.where(LedgerNotification.seq >= from_seq)
        if to_seq is not None:
            stmt = stmt.where(LedgerNotification.seq <= to_seq)
        return list(self.session.exec(stmt).all())

    def latest_seq(self) -> int:
        result = self.session.exec(select(func.max(LedgerNotification.seq))).first()
        return result or 0

    def verify_chain(self) -> Dict[str, Any]:
        """Recompute every hash and check linkage, like a sealed capsule check."""
        problems: List[str] = []
        prev: Optional[str] = None
        notifications = self.query()
        for notification in notifications:
            if notification.prev_hash != prev:
                problems.append(f"notification[{notification.seq}].prev_hash mismatch")
            expected = compute_chain_hash(chain_payload(notification), notification.prev_hash)
            if notification.curr_hash != expected:
                problems.append(f"notification[{notification.seq}].curr_hash mismatch")
            prev = notification.curr_hash
        return {"ok": not problems, "checked": len(notifications), "problems": problems}

    def _latest_hash(self) -> Optional[str]:
        stmt = (
            select(LedgerNotification.curr_hash)
            .order_by(LedgerNotification.seq.desc())
            .limit(1)
        )
        return self.session.exec(stmt).first()
