"""Dependency injection utilities."""
from collections.abc import Generator

from fastapi import Header
from sqlmodel import Session

from .infra.db import get_session


def db_session() -> Generator[Session, None, None]:
    """Provide a scoped DB session to FastAPI endpoints."""
    with get_session() as session:
        yield session


def caller_identity(x_caller_identity: str = Header(..., alias="X-Caller-Identity")) -> str:
    """Identity the request acts as; authenticating it is the gateway's job."""
    return x_caller_identity
