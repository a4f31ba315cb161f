#!/usr/bin/env python3
"""
Verify the MedVault notification hash chain for tamper detection.

Usage:
    python scripts/verify_chain.py --database-url sqlite:///./medvault.db
"""
from __future__ import annotations

import argparse
import os
import sys

from sqlalchemy import create_engine

from medvault.app.domain.models import NotificationKind
from medvault.app.infra.db import make_session_factory
from medvault.app.services.notifications import NotificationLog


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Verify notification chain integrity.")
    parser.add_argument(
        "--kind",
        choices=[kind.value for kind in NotificationKind],
        help="Also list notifications of this kind",
    )
    parser.add_argument(
        "--database-url",
        default=os.getenv("DATABASE_URL", "sqlite:///./medvault.db"),
        help="Database URL (SQLAlchemy compatible)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    session_scope = make_session_factory(create_engine(args.database_url, future=True))
    with session_scope() as db:
        log = NotificationLog(db)
        result = log.verify_chain()
        if args.kind:
            for notification in log.query(NotificationKind(args.kind)):
                print(
                    f"#{notification.seq} {notification.kind.value} "
                    f"actor={notification.actor} record={notification.record_id} "
                    f"target={notification.target}"
                )

    if not result["checked"]:
        print("No notifications found for verification.")
        return 0
    for problem in result["problems"]:
        print(f"[WARN] {problem}", file=sys.stderr)
    if result["ok"]:
        print(f"Verified {result['checked']} notifications; chain intact")
        return 0
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
