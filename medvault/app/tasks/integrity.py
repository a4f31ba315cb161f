"""Celery tasks for notification log integrity."""
from __future__ import annotations

import logging

from celery import Celery

from medvault.app.config import CELERY_BACKEND_URL, CELERY_BROKER_URL
from medvault.app.infra.db import get_session
from medvault.app.services.notifications import NotificationLog

logger = logging.getLogger(__name__)

celery_app = Celery("medvault", broker=CELERY_BROKER_URL, backend=CELERY_BACKEND_URL)


@celery_app.task(name="integrity.verify_notification_chain")
def verify_notification_chain() -> dict:
    """Recompute the notification hash chain and report breaks."""
    with get_session() as session:
        result = NotificationLog(session).verify_chain()
    if not result["ok"]:
        logger.error("notification chain broken: %s", result["problems"])
    return result
