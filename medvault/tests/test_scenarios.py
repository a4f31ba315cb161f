"""End-to-end flows through the ledger gateway and the vault client."""
import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from medvault.app.domain.cipher import decrypt_string, encrypt_string
from medvault.app.domain.errors import (
    AuthenticationFailure,
    DuplicateId,
    NotAuthorized,
    UnknownOperation,
)
from medvault.app.domain.kdf import MIN_ITERATIONS, derive_key
from medvault.app.domain.models import DeviceInfo, DeviceStatus, NotificationKind
from medvault.app.infra.db import init_db, make_session_factory
from medvault.app.infra.gateway import LedgerGateway, Operation
from medvault.client import DeviceVaultClient

NETWORK = 31337
ADMIN = "0x" + "aa" * 20
TECH = "0x" + "7e" * 20
STRANGER = "0x" + "5a" * 20


def make_gateway() -> LedgerGateway:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return LedgerGateway(make_session_factory(engine))


def key_for(identity):
    return derive_key(identity, NETWORK, MIN_ITERATIONS)


def test_admin_registers_and_reads_back_ciphertext():
    gateway = make_gateway()
    gateway.submit_transaction(ADMIN, "initialize", network_id=NETWORK)

    admin_key = key_for(ADMIN)
    e1 = encrypt_string("coil replaced", admin_key).encode()
    e2 = encrypt_string("B0 drift 0.2 ppm", admin_key).encode()
    info = DeviceInfo(name="MRI-X200", status=DeviceStatus.NOMINAL)
    confirmation = gateway.submit_transaction(
        ADMIN, "register", record_id="dev-001", info=info, ciphertext_a=e1, ciphertext_b=e2
    )
    assert confirmation.operation is Operation.REGISTER
    assert confirmation.notification_seq == 1

    public = gateway.read_state("public_info", record_id="dev-001")
    assert public.name == info.name
    assert public.status == info.status
    assert public.last_maintenance == info.last_maintenance
    assert public.next_calibration == info.next_calibration

    with pytest.raises(NotAuthorized):
        gateway.read_state("ciphertext", caller=STRANGER, record_id="dev-001")
    assert gateway.read_state("ciphertext", caller=ADMIN, record_id="dev-001") == (e1, e2)


def test_technician_updates_and_decrypts_with_own_key():
    gateway = make_gateway()
    gateway.submit_transaction(ADMIN, "initialize", network_id=NETWORK)
    admin = DeviceVaultClient(gateway, ADMIN, NETWORK, MIN_ITERATIONS)
    admin.register_device("dev-001", "MRI-X200", notes="initial", calibration="factory")

    gateway.submit_transaction(ADMIN, "grant", target=TECH)
    tech = DeviceVaultClient(gateway, TECH, NETWORK, MIN_ITERATIONS)
    assert tech.check_authorization()

    tech_key = key_for(TECH)
    e3 = encrypt_string("bearing greased", tech_key).encode()
    e4 = encrypt_string("offset +0.03", tech_key).encode()
    gateway.submit_transaction(
        TECH,
        "update",
        record_id="dev-001",
        info=DeviceInfo(name="MRI-X200", status=DeviceStatus.UNDER_MAINTENANCE),
        ciphertext_a=e3,
        ciphertext_b=e4,
    )

    assert tech.get_encrypted_records("dev-001") == (e3, e4)
    assert tech.decrypt_device_records("dev-001") == ("bearing greased", "offset +0.03")
    assert decrypt_string(e3.decode(), tech_key) == "bearing greased"

    # one key per credential: the administrator cannot read the technician's notes
    with pytest.raises(AuthenticationFailure):
        admin.decrypt_device_records("dev-001")


def test_client_round_trip_and_public_browsing():
    gateway = make_gateway()
    gateway.submit_transaction(ADMIN, "initialize")
    gateway.submit_transaction(ADMIN, "grant", target=TECH)
    tech = DeviceVaultClient(gateway, TECH, NETWORK, MIN_ITERATIONS)

    tech.register_device(
        "dev-004", "Infusion Pump IP-7", "Infusion", DeviceStatus.NOMINAL, "flow ok", "±2%"
    )
    tech.update_maintenance("dev-004", DeviceStatus.CRITICAL, "occlusion alarm", "recalibrate")

    info = tech.get_device_info("dev-004")
    assert (info.name, info.category, info.status) == (
        "Infusion Pump IP-7",
        "Infusion",
        DeviceStatus.CRITICAL,
    )
    assert tech.get_device_info("missing") is None
    assert tech.decrypt_device_records("dev-004") == ("occlusion alarm", "recalibrate")

    stranger = DeviceVaultClient(gateway, STRANGER, NETWORK, MIN_ITERATIONS)
    assert stranger.get_device_info("dev-004").name == "Infusion Pump IP-7"
    assert not stranger.check_authorization()
    with pytest.raises(NotAuthorized):
        stranger.decrypt_device_records("dev-004")


def test_failed_transaction_leaves_no_trace():
    gateway = make_gateway()
    gateway.submit_transaction(ADMIN, "initialize")
    admin = DeviceVaultClient(gateway, ADMIN, NETWORK, MIN_ITERATIONS)
    admin.register_device("dev-001", "MRI-X200", notes="a", calibration="b")

    with pytest.raises(DuplicateId):
        admin.register_device("dev-001", "Other", notes="c", calibration="d")
    with pytest.raises(NotAuthorized):
        DeviceVaultClient(gateway, STRANGER, NETWORK, MIN_ITERATIONS).register_device(
            "dev-002", "Rogue", notes="x", calibration="y"
        )

    notifications = gateway.query_notifications()
    assert [n.kind for n in notifications] == [NotificationKind.RECORD_REGISTERED]
    assert admin.get_device_info("dev-002") is None
    assert admin.decrypt_device_records("dev-001") == ("a", "b")


def test_discovery_and_notification_queries():
    gateway = make_gateway()
    gateway.submit_transaction(ADMIN, "initialize")
    admin = DeviceVaultClient(gateway, ADMIN, NETWORK, MIN_ITERATIONS)
    for device_id in ("dev-001", "dev-002"):
        admin.register_device(device_id, device_id.upper(), notes="n", calibration="c")
    gateway.submit_transaction(ADMIN, "grant", target=TECH)
    gateway.submit_transaction(ADMIN, "revoke", target=TECH)

    assert admin.list_device_ids(manual_ids=["dev-legacy"]) == ["dev-001", "dev-002", "dev-legacy"]
    granted = gateway.query_notifications(NotificationKind.AUTHORIZATION_GRANTED)
    assert [(n.target, n.actor) for n in granted] == [(TECH[2:], ADMIN[2:])]
    assert [n.seq for n in gateway.query_notifications(from_seq=2, to_seq=3)] == [2, 3]
    assert gateway.read_state("administrator") == ADMIN[2:]
    assert gateway.read_state("is_authorized", identity=TECH) is False


def test_unknown_operations_are_rejected():
    gateway = make_gateway()
    with pytest.raises(UnknownOperation):
        gateway.submit_transaction(ADMIN, "transfer_admin")
    with pytest.raises(UnknownOperation):
        gateway.read_state("balance")
