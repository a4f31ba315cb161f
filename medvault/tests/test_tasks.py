from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from medvault.app.domain.models import LedgerNotification
from medvault.app.infra.db import init_db, make_session_factory
from medvault.app.services.authorization import AuthorizationLedger
from medvault.app.tasks import integrity

ADMIN = "0x" + "aa" * 20
TECH = "0x" + "7e" * 20


def test_verify_notification_chain_task(monkeypatch):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    session_scope = make_session_factory(engine)
    monkeypatch.setattr(integrity, "get_session", session_scope)

    with session_scope() as session:
        ledger = AuthorizationLedger(session)
        ledger.initialize(ADMIN)
        ledger.grant(ADMIN, TECH)
        ledger.revoke(ADMIN, TECH)

    assert integrity.verify_notification_chain() == {"ok": True, "checked": 2, "problems": []}

    with session_scope() as session:
        forged = session.get(LedgerNotification, 1)
        forged.actor = TECH[2:]
        session.add(forged)

    result = integrity.verify_notification_chain()
    assert result["ok"] is False
    assert result["problems"] == ["notification[1].curr_hash mismatch"]
