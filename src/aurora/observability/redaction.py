"""Masking helpers for safe logging. All sender data must pass through these.

Two separate contracts live here:
- identity fields (phone, email) are masked into an operator-readable form
  before they reach a log line;
- credential values are never logged at all: any record whose text matches
  the credential-term pattern is dropped by CredentialGuardFilter.

Masking is one-way and deterministic. It is not an anonymization or
encryption primitive.
"""

import logging
import re
from typing import Any

from aurora.domain.validators import is_valid_email, is_valid_phone
from aurora.domain.verdicts import RejectionReason

_PHONE_MASK = "****"
_EMAIL_MASK = "***"
_PHONE_HEAD = 4
_PHONE_TAIL = 3

# Embedded identities inside free text (e.g. an exception message)
_EMBEDDED_PHONE_PATTERN = re.compile(r"\+?\d[\d\s\-()]{8,}\d")
_EMBEDDED_EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

CREDENTIAL_TERM_PATTERN = re.compile(r"password|token|secret|key", re.IGNORECASE)

SECURITY_LOGGER_NAME = "aurora.security"

_TRACEBACK_FORMATTER = logging.Formatter()


def mask_phone(phone: str) -> str:
    """Mask a phone number: first 4 chars + '****' + last 3 chars.

    Strings too short to keep both ends are masked entirely.

    Raises:
        TypeError: If phone is not a string (integration bug).
    """
    if not isinstance(phone, str):
        raise TypeError(f"mask_phone expects str, got {type(phone).__name__}")
    if len(phone) < _PHONE_HEAD + _PHONE_TAIL:
        return _PHONE_MASK
    return phone[:_PHONE_HEAD] + _PHONE_MASK + phone[-_PHONE_TAIL:]


def mask_email(email: str) -> str:
    """Mask an email: first 2 chars of the local part + '***@' + domain.

    The domain is kept for routing diagnostics. A one-letter local part is
    padded with '*' so the output shape stays fixed. The result always
    differs from the input.

    Raises:
        TypeError: If email is not a string (integration bug).
    """
    if not isinstance(email, str):
        raise TypeError(f"mask_email expects str, got {type(email).__name__}")
    local, sep, domain = email.partition("@")
    if not sep:
        return _EMAIL_MASK
    masked = local[:2].ljust(2, "*") + _EMAIL_MASK + "@" + domain
    if masked == email:
        # input already looked masked; never echo it back
        return "**" + _EMAIL_MASK + "@" + domain
    return masked


def contains_credential_term(line: str) -> bool:
    """Check if a log line mentions a credential term."""
    return CREDENTIAL_TERM_PATTERN.search(line) is not None


def check_log_line(line: str) -> RejectionReason | None:
    """Return CREDENTIAL_LEAK_ATTEMPT if the line must not be emitted."""
    if contains_credential_term(line):
        return RejectionReason.CREDENTIAL_LEAK_ATTEMPT
    return None


def redact_string(value: str) -> str:
    """Mask a string for logging.

    Whole-value phones and emails are masked with the codec; any other
    string has embedded phone/email patterns masked in place.
    """
    if is_valid_phone(value):
        return mask_phone(value)
    if is_valid_email(value):
        return mask_email(value)
    result = _EMBEDDED_EMAIL_PATTERN.sub(lambda m: mask_email(m.group(0)), value)
    return _EMBEDDED_PHONE_PATTERN.sub(lambda m: mask_phone(m.group(0)), result)


def redact_value(value: Any) -> str:
    """Redact any value for safe logging. Returns string representation."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        # For dicts, only log field names (structure), never values
        return f"dict(fields={list(value)})"
    if isinstance(value, (list, tuple)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Build a context dict safe for logging. All values are redacted."""
    return {k: redact_value(v) for k, v in kwargs.items()}


class CredentialGuardFilter(logging.Filter):
    """Drop any record whose text matches the credential-term pattern.

    A dropped record means a credential value reached the logger, which is
    an upstream bug: a content-free CRITICAL alert is emitted on the
    `aurora.security` logger instead of the original line.
    """

    def __init__(self, name: str = "") -> None:
        super().__init__(name)
        self.blocked = 0

    def filter(self, record: logging.LogRecord) -> bool:
        if check_log_line(self._record_text(record)) is None:
            return True
        self.blocked += 1
        if record.name != SECURITY_LOGGER_NAME:
            logging.getLogger(SECURITY_LOGGER_NAME).critical(
                "credential leak attempt blocked",
                extra={
                    "extra_fields": {
                        "reason": RejectionReason.CREDENTIAL_LEAK_ATTEMPT.value,
                        "source_logger": record.name,
                        "source_line": record.lineno,
                    }
                },
            )
        return False

    @staticmethod
    def _record_text(record: logging.LogRecord) -> str:
        try:
            text = record.getMessage()
        except (TypeError, ValueError):
            # bad %-args: fall back to the raw template
            text = str(record.msg)
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            text += " " + " ".join(f"{k}={v}" for k, v in extra_fields.items())
        # tracebacks end up in the emitted line too
        if record.exc_info:
            text += " " + _TRACEBACK_FORMATTER.formatException(record.exc_info)
        elif record.exc_text:
            text += " " + record.exc_text
        if record.stack_info:
            text += " " + record.stack_info
        return text
