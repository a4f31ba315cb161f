"""Best-effort discovery of registered record ids.

Only the most recent ``window`` notifications are scanned. Ids registered
before the window are not found; callers supply those as ``manual_ids``.
"""
from __future__ import annotations

import logging
from typing import Iterable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..config import DISCOVERY_WINDOW
from ..domain.models import NotificationKind
from .notifications import NotificationLog

logger = logging.getLogger(__name__)


def _merge(*groups: Iterable[str]) -> List[str]:
    seen: dict[str, None] = {}
    for group in groups:
        for record_id in group:
            if record_id:
                seen.setdefault(record_id, None)
    return list(seen)


def discover_record_ids(
    session: Session,
    window: int = DISCOVERY_WINDOW,
    manual_ids: Iterable[str] = (),
) -> List[str]:
    manual = list(manual_ids)
    try:
        log = NotificationLog(session)
        latest = log.latest_seq()
        from_seq = max(latest - window + 1, 1)
        notifications = log.query(NotificationKind.RECORD_REGISTERED, from_seq, latest)
    except SQLAlchemyError as exc:
        logger.warning("record discovery failed, using manual ids only: %s", exc)
        return _merge(manual)

    logger.debug(
        "scanned %d registrations in seq %d..%d", len(notifications), from_seq, latest
    )
    return _merge((n.record_id for n in notifications), manual)
