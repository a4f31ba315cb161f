import threading
import time

from sqlmodel import create_engine

from medvault.app.domain.errors import VaultError
from medvault.app.infra.db import init_db, make_session_factory
from medvault.app.infra.gateway import LedgerGateway
from medvault.app.services.authorization import AuthorizationLedger
from medvault.app.services.notifications import NotificationLog

ADMIN = "0x" + "aa" * 20
TECH = "0x" + "7e" * 20
NURSE = "0x" + "3c" * 20


def file_backed_scope(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    return make_session_factory(engine)


def slow_down(monkeypatch, cls, name, delay=0.2):
    """Sleep after a read so two writers would overlap without serialization."""
    original = getattr(cls, name)

    def slowed(self, *args, **kwargs):
        value = original(self, *args, **kwargs)
        time.sleep(delay)
        return value

    monkeypatch.setattr(cls, name, slowed)


def run_together(*calls):
    barrier = threading.Barrier(len(calls))
    outcomes = [None] * len(calls)

    def worker(index, call):
        barrier.wait()
        try:
            call()
            outcomes[index] = "ok"
        except VaultError as exc:
            outcomes[index] = type(exc).__name__

    threads = [threading.Thread(target=worker, args=(i, c)) for i, c in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return outcomes


def chain_status(scope):
    with scope() as session:
        return NotificationLog(session).verify_chain()


def test_concurrent_grants_keep_the_chain_linear(tmp_path, monkeypatch):
    scope = file_backed_scope(tmp_path)
    gateway = LedgerGateway(scope)
    gateway.submit_transaction(ADMIN, "initialize")
    slow_down(monkeypatch, NotificationLog, "_latest_hash")

    outcomes = run_together(
        lambda: gateway.submit_transaction(ADMIN, "grant", target=TECH),
        lambda: gateway.submit_transaction(ADMIN, "grant", target=NURSE),
    )

    assert outcomes == ["ok", "ok"]
    assert chain_status(scope) == {"ok": True, "checked": 2, "problems": []}
    assert [n.seq for n in gateway.query_notifications()] == [1, 2]


def test_concurrent_grants_of_one_identity_apply_once(tmp_path, monkeypatch):
    scope = file_backed_scope(tmp_path)
    gateway = LedgerGateway(scope)
    gateway.submit_transaction(ADMIN, "initialize")
    slow_down(monkeypatch, AuthorizationLedger, "is_authorized")

    outcomes = run_together(
        lambda: gateway.submit_transaction(ADMIN, "grant", target=TECH),
        lambda: gateway.submit_transaction(ADMIN, "grant", target=TECH),
    )

    assert sorted(outcomes) == ["AlreadyAuthorized", "ok"]
    assert len(gateway.query_notifications()) == 1
    assert gateway.read_state("is_authorized", identity=TECH) is True


def test_sqlite_transactions_serialize_without_the_gateway(tmp_path, monkeypatch):
    scope = file_backed_scope(tmp_path)
    with scope() as session:
        AuthorizationLedger(session).initialize(ADMIN)
    slow_down(monkeypatch, NotificationLog, "_latest_hash")

    def grant(target):
        with scope() as session:
            AuthorizationLedger(session).grant(ADMIN, target)

    outcomes = run_together(lambda: grant(TECH), lambda: grant(NURSE))

    assert outcomes == ["ok", "ok"]
    assert chain_status(scope) == {"ok": True, "checked": 2, "problems": []}
