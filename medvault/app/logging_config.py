"""
Logging configuration for MedVault.

JSON records on stdout, plus an audit logger for authorization decisions and
ledger changes.
"""
from __future__ import annotations

import json
import logging
import sys
import time
from typing import Any, Optional


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)
        return json.dumps(log_data, default=str)


class AuditLogger:
    """Audit trail for access decisions and authorization changes."""

    def __init__(self, name: str = "medvault.audit") -> None:
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, message: str, **fields: Any) -> None:
        self._logger.log(
            level,
            "%s: %s",
            event_type,
            message,
            extra={"extra_fields": {"event_type": event_type, **fields}},
        )

    def access_decision(self, actor: str, action: str, resource: str, allowed: bool) -> None:
        self._log(
            logging.INFO if allowed else logging.WARNING,
            "ACCESS_DECISION",
            f"{action} on {resource} {'allowed' if allowed else 'denied'}",
            actor=actor,
            action=action,
            resource=resource,
            allowed=allowed,
        )

    def authorization_change(self, kind: str, actor: str, target: str) -> None:
        self._log(
            logging.INFO,
            "AUTHORIZATION_CHANGE",
            f"{kind} for {target}",
            kind=kind,
            actor=actor,
            target=target,
        )

    def record_change(self, kind: str, actor: str, record_id: str) -> None:
        self._log(
            logging.INFO,
            "RECORD_CHANGE",
            f"{kind} {record_id}",
            kind=kind,
            actor=actor,
            record_id=record_id,
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level name
        json_format: Emit JSON records instead of plain text
        log_file: Optional file path for a second handler
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


audit_log = AuditLogger()
