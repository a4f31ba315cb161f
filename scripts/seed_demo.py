#!/usr/bin/env python3
"""Seed a MedVault DB with an administrator, a technician and demo devices."""
from __future__ import annotations

import argparse
import os

from sqlalchemy import create_engine

from medvault.app.domain.errors import AlreadyAuthorized, DuplicateId, LedgerAlreadyInitialized
from medvault.app.domain.models import DeviceStatus
from medvault.app.infra.db import init_db, make_session_factory
from medvault.app.infra.gateway import LedgerGateway
from medvault.client import DeviceVaultClient

DEMO_DEVICES = [
    ("dev-001", "MRI Scanner PRO-X200", "Magnetic Resonance Imaging", DeviceStatus.NOMINAL),
    ("dev-002", "CT Scanner Helix-64", "Computed Tomography", DeviceStatus.UNDER_MAINTENANCE),
    ("dev-003", "Infusion Pump IP-7", "Infusion", DeviceStatus.CRITICAL),
]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed DB with demo devices")
    parser.add_argument("--admin", default="0x" + "11" * 20, help="administrator identity")
    parser.add_argument("--technician", default="0x" + "22" * 20, help="technician identity")
    parser.add_argument("--network-id", type=int, default=31337)
    parser.add_argument("--iterations", type=int, default=100_000)
    parser.add_argument(
        "--database-url",
        default=os.getenv("DATABASE_URL", "sqlite:///./medvault.db"),
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    engine = create_engine(args.database_url, future=True)
    init_db(engine)
    gateway = LedgerGateway(make_session_factory(engine))

    try:
        gateway.submit_transaction(args.admin, "initialize", network_id=args.network_id)
    except LedgerAlreadyInitialized:
        print("Ledger already initialized; reusing it.")
    try:
        gateway.submit_transaction(args.admin, "grant", target=args.technician)
    except AlreadyAuthorized:
        pass

    technician = DeviceVaultClient(gateway, args.technician, args.network_id, args.iterations)
    seeded = 0
    for device_id, name, category, status in DEMO_DEVICES:
        try:
            technician.register_device(
                device_id,
                name,
                category,
                status,
                notes=f"Routine inspection of {name}.",
                calibration="Calibrated against reference phantom.",
            )
            seeded += 1
        except DuplicateId:
            continue
    print(f"Seeded {seeded} demo devices.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
