"""Authorization ledger routes."""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from ..deps import caller_identity, db_session
from ..domain.schemas import (
    AdministratorOut,
    AuthorizationEntryOut,
    AuthorizationStatusOut,
    InitializeIn,
    TargetIn,
)
from ..services.authorization import AuthorizationLedger

router = APIRouter()


@router.get("/admin", response_model=AdministratorOut)
def get_administrator(session: Session = Depends(db_session)):
    return AdministratorOut(administrator=AuthorizationLedger(session).administrator())


@router.post("/initialize", response_model=AdministratorOut, status_code=status.HTTP_201_CREATED)
def initialize_ledger(
    payload: InitializeIn,
    caller: str = Depends(caller_identity),
    session: Session = Depends(db_session),
):
    record = AuthorizationLedger(session).initialize(caller, payload.network_id)
    return AdministratorOut(administrator=record.identity)


@router.post("/grant", response_model=AuthorizationEntryOut)
def grant(
    payload: TargetIn,
    caller: str = Depends(caller_identity),
    session: Session = Depends(db_session),
):
    return AuthorizationLedger(session).grant(caller, payload.target)


@router.post("/revoke", response_model=AuthorizationEntryOut)
def revoke(
    payload: TargetIn,
    caller: str = Depends(caller_identity),
    session: Session = Depends(db_session),
):
    return AuthorizationLedger(session).revoke(caller, payload.target)


@router.get("/entries", response_model=List[AuthorizationEntryOut])
def list_entries(session: Session = Depends(db_session)):
    return AuthorizationLedger(session).list_entries()


@router.get("/{identity}", response_model=AuthorizationStatusOut)
def is_authorized(identity: str, session: Session = Depends(db_session)):
    return AuthorizationStatusOut(
        identity=identity,
        authorized=AuthorizationLedger(session).is_authorized(identity),
    )
