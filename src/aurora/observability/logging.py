"""Structured JSON logging with correlation ID support."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .correlation import get_correlation_id
from .redaction import SECURITY_LOGGER_NAME, CredentialGuardFilter

# Shared so blocked counts can be inspected in one place
credential_guard = CredentialGuardFilter()


class JsonFormatter(logging.Formatter):
    """JSON formatter that includes correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            log_obj["correlationId"] = correlation_id

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_obj.update(record.extra_fields)

        return json.dumps(log_obj, default=str, ensure_ascii=False)


def get_logger(name: str) -> logging.Logger:
    """Get a logger configured for JSON output behind the credential guard.

    The guard is attached to the logger itself, so records are dropped
    before any handler (including pytest's caplog) sees them.
    """
    logger = logging.getLogger(name)

    if credential_guard not in logger.filters:
        logger.addFilter(credential_guard)

    # Only configure if no handlers (avoid duplicate handlers)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    return logger


# Alerts for blocked records go through the same JSON pipeline
security_logger = get_logger(SECURITY_LOGGER_NAME)
