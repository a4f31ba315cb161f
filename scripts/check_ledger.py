#!/usr/bin/env python3
"""Report the ledger administrator and whether an identity is authorized."""
from __future__ import annotations

import argparse
import os

from sqlalchemy import create_engine

from medvault.app.infra.db import make_session_factory
from medvault.app.infra.gateway import LedgerGateway


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check ledger initialization.")
    parser.add_argument("--identity", help="identity to check authorization for")
    parser.add_argument(
        "--database-url",
        default=os.getenv("DATABASE_URL", "sqlite:///./medvault.db"),
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    gateway = LedgerGateway(make_session_factory(create_engine(args.database_url, future=True)))

    admin = gateway.read_state("administrator")
    if admin is None:
        print("Ledger NOT initialized.")
        print("Set MEDVAULT_ADMIN_IDENTITY and start the API, or run scripts/seed_demo.py")
        return 1

    print(f"Administrator: 0x{admin}")
    if args.identity:
        authorized = gateway.read_state("is_authorized", identity=args.identity)
        print(f"Is {args.identity} authorized? {authorized}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
