"""Database session utilities."""
from contextlib import contextmanager
import logging
import time
from enum import Enum
from typing import Callable, ContextManager, Iterator, List, Optional, Type

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel, Session

from ..config import DATABASE_URL
from ..domain.models import DeviceStatus, NotificationKind

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, future=True, connect_args=connect_args)

# pg_advisory_xact_lock key shared by every ledger mutation
LEDGER_LOCK_KEY = 0x6D656476

# SQLAlchemy persists enum member names, under the lowercased class name.
SYNCED_ENUMS: List[Type[Enum]] = [DeviceStatus, NotificationKind]


def ensure_enum_values(bind_engine: Optional[Engine] = None) -> None:
    """Add enum members introduced after table creation to PostgreSQL types."""
    target_engine = bind_engine or engine
    if "postgresql" not in target_engine.dialect.name:
        return

    with target_engine.begin() as conn:
        for enum_class in SYNCED_ENUMS:
            type_name = enum_class.__name__.lower()
            rows = conn.execute(
                text(
                    """
                    SELECT e.enumlabel
                    FROM pg_type t
                    JOIN pg_enum e ON t.oid = e.enumtypid
                    WHERE t.typname = :type_name
                    """
                ),
                {"type_name": type_name},
            ).fetchall()
            if not rows:
                continue  # type not created yet
            existing = {row[0] for row in rows}
            for member_name in enum_class.__members__:
                if member_name in existing:
                    continue
                # ALTER TYPE ... ADD VALUE does not accept bind parameters
                conn.execute(
                    text(f"ALTER TYPE {type_name} ADD VALUE IF NOT EXISTS '{member_name}'")
                )


def init_db(bind_engine: Optional[Engine] = None, attempts: int = 30) -> None:
    """Create tables if they do not exist and keep enums in sync.

    Retries on startup to wait for the database service in Docker.
    """
    target_engine = bind_engine or engine
    last_err: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            SQLModel.metadata.create_all(target_engine)
            ensure_enum_values(target_engine)
            return
        except Exception as exc:  # pragma: no cover
            last_err = exc
            logger.warning("waiting for database (%d/%d): %s", attempt, attempts, exc)
            time.sleep(1)
    if last_err:
        raise last_err


def make_session_factory(bind_engine: Engine) -> Callable[[], ContextManager[Session]]:
    """Build a context manager yielding one transaction per use.

    Commits on success, rolls back on any error.
    """
    serialize_sqlite_writes(bind_engine)
    session_local = sessionmaker(
        bind=bind_engine,
        autoflush=False,
        autocommit=False,
        class_=Session,
    )

    @contextmanager
    def scope() -> Iterator[Session]:
        session = session_local()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return scope


def serialize_sqlite_writes(bind_engine: Engine) -> None:
    """Open every SQLite transaction with BEGIN IMMEDIATE.

    The write lock is then taken before the first read, so a transaction
    never acts on a chain tip or grant flag another writer is replacing.
    """
    if bind_engine.dialect.name != "sqlite":
        return
    if event.contains(bind_engine, "begin", _begin_immediate):
        return
    event.listen(bind_engine, "connect", _disable_pysqlite_begin)
    event.listen(bind_engine, "begin", _begin_immediate)


def _disable_pysqlite_begin(dbapi_connection, connection_record) -> None:
    dbapi_connection.isolation_level = None


def _begin_immediate(conn) -> None:
    conn.exec_driver_sql("BEGIN IMMEDIATE")


def acquire_ledger_lock(session: Session) -> None:
    """Serialize ledger mutations across PostgreSQL connections.

    Held until the transaction ends. SQLite needs nothing here, see
    :func:`serialize_sqlite_writes`.
    """
    if session.get_bind().dialect.name == "postgresql":
        session.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": LEDGER_LOCK_KEY})


get_session = make_session_factory(engine)
