"""Domain models shared between API and persistence layers."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import JSON, DateTime, LargeBinary
from sqlalchemy.types import TypeDecorator
from sqlmodel import Column, Field as SQLField, SQLModel

CALIBRATION_INTERVAL = timedelta(days=30)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCTimestamp(TypeDecorator):
    """Aware UTC datetimes on every backend.

    SQLite keeps no offset, so values are normalized on the way in and
    tagged as UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return as_utc(value) if value is not None else None

    def process_result_value(self, value, dialect):
        return as_utc(value) if value is not None else None


class DeviceStatus(str, Enum):
    NOMINAL = "nominal"
    UNDER_MAINTENANCE = "under_maintenance"
    CRITICAL = "critical"


class NotificationKind(str, Enum):
    RECORD_REGISTERED = "RecordRegistered"
    RECORD_UPDATED = "RecordUpdated"
    AUTHORIZATION_GRANTED = "AuthorizationGranted"
    AUTHORIZATION_REVOKED = "AuthorizationRevoked"


class LedgerAdmin(SQLModel, table=True):
    """The single administrator fixed at ledger initialization."""

    __tablename__ = "ledger_admin"

    id: int = SQLField(default=1, primary_key=True)
    identity: str = SQLField(index=True)
    network_id: Optional[int] = SQLField(default=None)
    created_at: datetime = SQLField(default_factory=utcnow, sa_type=UTCTimestamp, nullable=False)


class AuthorizationEntry(SQLModel, table=True):
    __tablename__ = "authorization_entries"

    identity: str = SQLField(primary_key=True)
    authorized: bool = SQLField(default=False)
    updated_by: str
    updated_at: datetime = SQLField(default_factory=utcnow, sa_type=UTCTimestamp, nullable=False)


class AuthorizationEntryRead(BaseModel):
    identity: str
    authorized: bool
    updated_by: str
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DeviceRecord(SQLModel, table=True):
    """Device metadata in the clear plus two opaque ciphertext blobs."""

    __tablename__ = "device_records"

    id: str = SQLField(primary_key=True, index=True)
    name: str
    category: str = SQLField(default="")
    status: DeviceStatus = SQLField(default=DeviceStatus.NOMINAL, index=True)
    last_maintenance: datetime = SQLField(sa_type=UTCTimestamp, nullable=False)
    next_calibration: datetime = SQLField(sa_type=UTCTimestamp, nullable=False)
    registered: bool = SQLField(default=True)
    encrypted_notes: bytes = SQLField(sa_column=Column(LargeBinary, nullable=False))
    encrypted_calibration: bytes = SQLField(sa_column=Column(LargeBinary, nullable=False))
    registered_by: str = SQLField(index=True)
    updated_by: str
    created_at: datetime = SQLField(default_factory=utcnow, sa_type=UTCTimestamp, nullable=False)
    updated_at: datetime = SQLField(default_factory=utcnow, sa_type=UTCTimestamp, nullable=False)


class DeviceInfo(BaseModel):
    """Visible fields supplied on register/update."""

    name: str = Field(..., min_length=1)
    category: str = ""
    status: DeviceStatus = DeviceStatus.NOMINAL
    last_maintenance: datetime = Field(default_factory=utcnow)
    next_calibration: datetime = Field(default_factory=lambda: utcnow() + CALIBRATION_INTERVAL)

    @field_validator("last_maintenance", "next_calibration")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class DevicePublicInfo(BaseModel):
    id: str
    name: str
    category: str
    status: DeviceStatus
    last_maintenance: datetime
    next_calibration: datetime
    registered: bool

    model_config = ConfigDict(from_attributes=True)


class LedgerNotification(SQLModel, table=True):
    """Append-only, hash-chained notification row."""

    __tablename__ = "ledger_notifications"

    seq: Optional[int] = SQLField(default=None, primary_key=True)
    kind: NotificationKind = SQLField(index=True)
    actor: str = SQLField(index=True)
    record_id: Optional[str] = SQLField(default=None, index=True)
    target: Optional[str] = SQLField(default=None, index=True)
    name: Optional[str] = SQLField(default=None)
    payload: Dict[str, Any] = SQLField(
        sa_column=Column(JSON, nullable=False, server_default="{}")
    )
    prev_hash: Optional[str] = SQLField(default=None)
    curr_hash: Optional[str] = SQLField(default=None, index=True)
    created_at: datetime = SQLField(
        default_factory=utcnow, sa_type=UTCTimestamp, nullable=False, index=True
    )


class LedgerNotificationRead(BaseModel):
    seq: int
    kind: NotificationKind
    actor: str
    record_id: Optional[str]
    target: Optional[str]
    name: Optional[str]
    payload: Dict[str, Any]
    prev_hash: Optional[str]
    curr_hash: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
