"""Notification log routes."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..deps import db_session
from ..domain.models import LedgerNotificationRead, NotificationKind
from ..domain.schemas import ChainStatusOut
from ..services.notifications import NotificationLog

router = APIRouter()


@router.get("/", response_model=List[LedgerNotificationRead])
def query_notifications(
    kind: Optional[NotificationKind] = Query(None),
    from_seq: Optional[int] = Query(None, ge=1),
    to_seq: Optional[int] = Query(None, ge=1),
    session: Session = Depends(db_session),
):
    return NotificationLog(session).query(kind, from_seq, to_seq)


@router.get("/verify", response_model=ChainStatusOut)
def verify_chain(session: Session = Depends(db_session)):
    return NotificationLog(session).verify_chain()
