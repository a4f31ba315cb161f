"""Device record routes.

Public info is readable by anyone; ciphertext reads and all writes require an
authorized caller.
"""
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from ..config import DISCOVERY_WINDOW
from ..deps import caller_identity, db_session
from ..domain.models import DevicePublicInfo
from ..domain.schemas import CiphertextOut, DeviceIdsOut, DeviceRecordIn, DeviceRegisterIn
from ..services.discovery import discover_record_ids
from ..services.records import RecordStore

router = APIRouter()


@router.get("/", response_model=DeviceIdsOut)
def list_device_ids(
    extra: List[str] = Query([], description="ids to include regardless of discovery"),
    window: int = Query(DISCOVERY_WINDOW, ge=1, le=100_000),
    session: Session = Depends(db_session),
):
    return DeviceIdsOut(ids=discover_record_ids(session, window=window, manual_ids=extra), window=window)


@router.post("/", response_model=DevicePublicInfo, status_code=status.HTTP_201_CREATED)
def register_device(
    payload: DeviceRegisterIn,
    caller: str = Depends(caller_identity),
    session: Session = Depends(db_session),
):
    record = RecordStore(session).register(
        caller,
        payload.id,
        payload,
        payload.encrypted_notes.encode("utf-8"),
        payload.encrypted_calibration.encode("utf-8"),
    )
    return DevicePublicInfo.model_validate(record)


@router.put("/{record_id}", response_model=DevicePublicInfo)
def update_maintenance(
    record_id: str,
    payload: DeviceRecordIn,
    caller: str = Depends(caller_identity),
    session: Session = Depends(db_session),
):
    record = RecordStore(session).update(
        caller,
        record_id,
        payload,
        payload.encrypted_notes.encode("utf-8"),
        payload.encrypted_calibration.encode("utf-8"),
    )
    return DevicePublicInfo.model_validate(record)


@router.get("/{record_id}", response_model=DevicePublicInfo)
def get_public_info(record_id: str, session: Session = Depends(db_session)):
    return RecordStore(session).get_public_info(record_id)


@router.get("/{record_id}/ciphertext", response_model=CiphertextOut)
def get_ciphertext(
    record_id: str,
    caller: str = Depends(caller_identity),
    session: Session = Depends(db_session),
):
    notes, calibration = RecordStore(session).get_ciphertext(caller, record_id)
    return CiphertextOut(
        id=record_id,
        encrypted_notes=notes.decode("utf-8", errors="replace"),
        encrypted_calibration=calibration.decode("utf-8", errors="replace"),
    )
