"""Structured logging and audit trail for jsonmend.

Provides:
- JSON file handler with rotation (~/.jsonmend/logs/)
- Dedicated audit log for sanitize() runs
- Console handler respecting verbose mode

The library itself only creates named loggers; nothing is configured until
setup_logging() is called (the CLI does this).
"""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime
from typing import TYPE_CHECKING

from jsonmend import config

if TYPE_CHECKING:
    from jsonmend.types import SanitizationResult


_EXTRA_FIELDS = ("source", "success", "applied_fixes", "errors", "duration_s", "stage")


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = str(record.exc_info[1])
        # Include extra fields
        for key in _EXTRA_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the jsonmend package.

    - File handler: JSON lines to ~/.jsonmend/logs/jsonmend.log (with rotation)
    - Console handler: only if verbose=True, WARNING+ level
    """
    config.LOGS_DIR.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger("jsonmend")
    root.setLevel(logging.DEBUG)

    # Remove existing handlers (idempotent)
    root.handlers.clear()

    file_handler = logging.handlers.RotatingFileHandler(
        str(config.LOGS_DIR / "jsonmend.log"),
        maxBytes=config.MAX_LOG_BYTES,
        backupCount=config.LOG_BACKUP_COUNT,
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(JSONFormatter())
    root.addHandler(file_handler)

    if verbose:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter("[%(name)s] %(message)s"))
        root.addHandler(console_handler)


def get_audit_logger() -> logging.Logger:
    """Get the dedicated audit logger for sanitize() runs."""
    logger = logging.getLogger("jsonmend.audit")
    logger.setLevel(logging.INFO)
    audit_file = config.LOGS_DIR / "audit.jsonl"
    if not any(
        isinstance(h, logging.handlers.RotatingFileHandler)
        and str(audit_file) in getattr(h, "baseFilename", "")
        for h in logger.handlers
    ):
        config.LOGS_DIR.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            str(audit_file),
            maxBytes=config.MAX_LOG_BYTES,
            backupCount=config.LOG_BACKUP_COUNT,
        )
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
    return logger


def log_sanitization(source: str, result: SanitizationResult, duration_s: float) -> None:
    """Log a sanitize() run to the audit trail."""
    logger = get_audit_logger()
    logger.info(
        "Sanitized %s: %s",
        source,
        "ok" if result.success else "failed",
        extra={
            "source": source,
            "success": result.success,
            "applied_fixes": list(result.applied_fixes),
            "errors": list(result.errors),
            "duration_s": round(duration_s, 3),
        },
    )
