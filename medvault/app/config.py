"""Environment-driven settings. A local ``.env`` is honoured."""
from __future__ import annotations

import os

from dotenv import load_dotenv

from .domain.kdf import DEFAULT_ITERATIONS

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./medvault.db")

# Bootstraps the authorization ledger on startup when set.
ADMIN_IDENTITY = os.getenv("MEDVAULT_ADMIN_IDENTITY", "")
NETWORK_ID = int(os.getenv("MEDVAULT_NETWORK_ID", "31337"))
KDF_ITERATIONS = int(os.getenv("MEDVAULT_KDF_ITERATIONS", str(DEFAULT_ITERATIONS)))

# Registration notifications scanned when discovering record ids.
DISCOVERY_WINDOW = int(os.getenv("MEDVAULT_DISCOVERY_WINDOW", "1000"))

LOG_LEVEL = os.getenv("MEDVAULT_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("MEDVAULT_LOG_JSON", "true").lower() in ("1", "true", "yes")

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://redis:6379/0")
CELERY_BACKEND_URL = os.getenv("CELERY_RESULT_BACKEND", "redis://redis:6379/1")
