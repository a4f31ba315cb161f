import pytest
from sqlmodel import Session, SQLModel, create_engine

from medvault.app.domain.errors import (
    AlreadyAuthorized,
    InvalidIdentity,
    LedgerAlreadyInitialized,
    NotAdministrator,
    NotAuthorized,
    NotAuthorizedYet,
)
from medvault.app.domain.models import AuthorizationEntry, NotificationKind
from medvault.app.services.authorization import AuthorizationLedger
from medvault.app.services.notifications import NotificationLog

ADMIN = "0x" + "aa" * 20
TECH = "0x" + "7e" * 20
OTHER = "0x" + "0b" * 20
ZERO = "0x" + "00" * 20


def setup_ledger():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    session = Session(engine)
    ledger = AuthorizationLedger(session)
    ledger.initialize(ADMIN, 31337)
    session.commit()
    return session, ledger


def test_admin_is_authorized_without_entry():
    session, ledger = setup_ledger()
    assert ledger.administrator() == ADMIN[2:]
    assert ledger.is_authorized(ADMIN)
    assert ledger.is_authorized(ADMIN.upper().replace("0X", ""))
    assert session.get(AuthorizationEntry, ADMIN[2:]) is None


def test_initialize_only_once():
    _, ledger = setup_ledger()
    with pytest.raises(LedgerAlreadyInitialized):
        ledger.initialize(OTHER)


def test_initialize_rejects_zero_identity():
    engine = create_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        with pytest.raises(InvalidIdentity):
            AuthorizationLedger(session).initialize(ZERO)


def test_grant_then_revoke():
    session, ledger = setup_ledger()
    assert not ledger.is_authorized(TECH)

    ledger.grant(ADMIN, TECH)
    session.commit()
    assert ledger.is_authorized(TECH)

    ledger.revoke(ADMIN, TECH)
    session.commit()
    assert not ledger.is_authorized(TECH)

    entry = session.get(AuthorizationEntry, TECH[2:])
    assert entry is not None and entry.authorized is False

    ledger.grant(ADMIN, TECH)
    assert ledger.is_authorized(TECH)


def test_non_admin_cannot_grant_or_revoke():
    session, ledger = setup_ledger()
    ledger.grant(ADMIN, TECH)
    session.commit()

    with pytest.raises(NotAdministrator):
        ledger.grant(TECH, OTHER)
    with pytest.raises(NotAdministrator):
        ledger.revoke(TECH, TECH)

    assert not ledger.is_authorized(OTHER)
    assert ledger.is_authorized(TECH)
    kinds = [n.kind for n in NotificationLog(session).query()]
    assert kinds == [NotificationKind.AUTHORIZATION_GRANTED]


def test_grant_rejects_zero_and_duplicate_targets():
    _, ledger = setup_ledger()
    with pytest.raises(InvalidIdentity):
        ledger.grant(ADMIN, ZERO)
    with pytest.raises(InvalidIdentity):
        ledger.grant(ADMIN, "")

    ledger.grant(ADMIN, TECH)
    with pytest.raises(AlreadyAuthorized):
        ledger.grant(ADMIN, TECH.upper().replace("0X", "0x"))
    with pytest.raises(AlreadyAuthorized):
        ledger.grant(ADMIN, ADMIN)


def test_revoke_of_ungranted_target():
    _, ledger = setup_ledger()
    with pytest.raises(NotAuthorizedYet):
        ledger.revoke(ADMIN, TECH)
    # revoke-of-unauthorized is also a NotAuthorized
    with pytest.raises(NotAuthorized):
        ledger.revoke(ADMIN, OTHER)


def test_admin_cannot_be_revoked():
    _, ledger = setup_ledger()
    with pytest.raises(NotAuthorizedYet):
        ledger.revoke(ADMIN, ADMIN)
    assert ledger.is_authorized(ADMIN)


def test_is_authorized_never_raises():
    _, ledger = setup_ledger()
    assert ledger.is_authorized("garbage") is False
    assert ledger.is_authorized(None) is False


def test_uninitialized_ledger_has_no_administrator():
    engine = create_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        ledger = AuthorizationLedger(session)
        assert ledger.administrator() is None
        assert not ledger.is_authorized(ADMIN)
        with pytest.raises(NotAdministrator):
            ledger.grant(ADMIN, TECH)


def test_each_change_emits_one_notification():
    session, ledger = setup_ledger()
    ledger.grant(ADMIN, TECH)
    ledger.revoke(ADMIN, TECH)
    session.commit()

    notifications = NotificationLog(session).query()
    assert [(n.kind, n.target, n.actor) for n in notifications] == [
        (NotificationKind.AUTHORIZATION_GRANTED, TECH[2:], ADMIN[2:]),
        (NotificationKind.AUTHORIZATION_REVOKED, TECH[2:], ADMIN[2:]),
    ]


def test_list_entries_sorted():
    _, ledger = setup_ledger()
    ledger.grant(ADMIN, TECH)
    ledger.grant(ADMIN, OTHER)
    assert [e.identity for e in ledger.list_entries()] == [OTHER[2:], TECH[2:]]
