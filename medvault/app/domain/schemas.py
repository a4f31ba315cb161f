"""API I/O schemas."""
from typing import List, Optional

from pydantic import BaseModel, Field

from .models import AuthorizationEntryRead, DeviceInfo


class InitializeIn(BaseModel):
    network_id: Optional[int] = Field(default=None, ge=0)


class AdministratorOut(BaseModel):
    administrator: Optional[str]


class TargetIn(BaseModel):
    target: str


class AuthorizationStatusOut(BaseModel):
    identity: str
    authorized: bool


class AuthorizationEntryOut(AuthorizationEntryRead):
    pass


class DeviceRecordIn(DeviceInfo):
    """Visible fields plus the two envelopes, as text."""

    encrypted_notes: str
    encrypted_calibration: str


class DeviceRegisterIn(DeviceRecordIn):
    id: str = Field(..., min_length=1, description="caller-chosen device id")


class CiphertextOut(BaseModel):
    id: str
    encrypted_notes: str
    encrypted_calibration: str


class DeviceIdsOut(BaseModel):
    ids: List[str]
    window: int


class ChainStatusOut(BaseModel):
    ok: bool
    checked: int
    problems: List[str]
