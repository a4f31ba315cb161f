"""FastAPI application bootstrap for MedVault."""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import ADMIN_IDENTITY, LOG_JSON, LOG_LEVEL, NETWORK_ID
from .domain.errors import LedgerAlreadyInitialized, VaultError
from .domain.identity import canonical_identity
from .infra.db import get_session, init_db
from .logging_config import configure_logging
from .routers import authorization, notifications, records
from .services.authorization import AuthorizationLedger

logger = logging.getLogger(__name__)


def bootstrap_ledger(admin_identity: str = ADMIN_IDENTITY) -> None:
    """Initialize the ledger from configuration unless already done."""
    if not admin_identity:
        return
    admin_id = canonical_identity(admin_identity)
    with get_session() as session:
        ledger = AuthorizationLedger(session)
        current = ledger.administrator()
        if current is None:
            ledger.initialize(admin_id, NETWORK_ID)
            logger.info("ledger initialized with administrator %s", admin_id)
        elif current != admin_id:
            logger.warning(
                "configured administrator %s ignored, ledger already owned by %s",
                admin_id,
                current,
            )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(LOG_LEVEL, json_format=LOG_JSON)
    init_db()
    try:
        bootstrap_ledger()
    except LedgerAlreadyInitialized:
        # another worker got there first
        pass
    yield


async def vault_error_handler(request: Request, exc: VaultError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": type(exc).__name__},
    )


def create_app() -> FastAPI:
    app = FastAPI(title="MedVault API", version="0.1.0", lifespan=lifespan)
    app.add_exception_handler(VaultError, vault_error_handler)

    app.include_router(authorization.router, prefix="/authorization", tags=["authorization"])
    app.include_router(records.router, prefix="/records", tags=["records"])
    app.include_router(notifications.router, prefix="/notifications", tags=["notifications"])

    return app


app = create_app()
