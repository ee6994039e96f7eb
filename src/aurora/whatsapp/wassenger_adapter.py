"""Wassenger adapter - validate and normalize webhook payloads.

ATENCIÓN PII:
- the returned event carries the sender phone, name and message text
- use it in memory only; never log it without the masking codec
"""

import re
from datetime import datetime
from typing import Any

from aurora.domain.models import InboundMessageEvent
from aurora.infra.time import as_utc, utc_now

# Wassenger emits e.g. "message:in:new"; older setups send "message:in:text"
INCOMING_EVENT_PREFIX = "message:in"

_DIGITS_ONLY = re.compile(r"\d+", re.ASCII)
# Separators people and providers put inside phone numbers
_PHONE_SEPARATORS = re.compile(r"[\s\-().]")


class InvalidPayloadError(Exception):
    """Raised when Wassenger payload has invalid shape."""

    pass


def is_incoming(payload: dict[str, Any]) -> bool:
    """Check whether the payload is an inbound message event."""
    event = payload.get("event")
    return isinstance(event, str) and event.startswith(INCOMING_EVENT_PREFIX)


def canonical_sender(raw: str) -> str:
    """Best-effort canonical form: strip separators, prefix '+' to bare digits.

    The result is NOT validated here; the session gate decides whether it is
    an acceptable sender.
    """
    cleaned = _PHONE_SEPARATORS.sub("", raw.strip())
    if cleaned.startswith("00") and _DIGITS_ONLY.fullmatch(cleaned):
        return "+" + cleaned[2:]
    if _DIGITS_ONLY.fullmatch(cleaned):
        return "+" + cleaned
    return cleaned


def normalize(payload: dict[str, Any], received_at: datetime | None = None) -> InboundMessageEvent:
    """Normalize a Wassenger payload into an InboundMessageEvent.

    Args:
        payload: Raw webhook payload from Wassenger.
        received_at: Server receive time (defaults to now). The payload
            timestamp is sender-controlled and never used for admission.

    Returns:
        InboundMessageEvent with sender and text (PII).

    Raises:
        InvalidPayloadError: If required fields are missing or invalid.
    """
    if not isinstance(payload, dict):
        raise InvalidPayloadError("payload must be an object")

    data = payload.get("data")
    if not isinstance(data, dict):
        raise InvalidPayloadError("missing data")

    # Different Wassenger versions use different field names
    sender = data.get("fromNumber") or data.get("from") or ""
    if not isinstance(sender, str) or not sender.strip():
        raise InvalidPayloadError("missing fromNumber")

    text = data.get("body") or data.get("message") or ""
    if not isinstance(text, str):
        raise InvalidPayloadError("invalid body")
    text = text.strip()
    if not text:
        raise InvalidPayloadError("missing body")

    message_id = data.get("id")
    if message_id is not None and not isinstance(message_id, str):
        message_id = str(message_id)

    name = data.get("fromName") or data.get("name")
    if not isinstance(name, str):
        name = None

    if received_at is None:
        received_at = utc_now()

    return InboundMessageEvent(
        sender_id=canonical_sender(sender),
        raw_text=text,
        received_at=as_utc(received_at),
        channel="whatsapp",
        message_id=message_id,
        sender_name=name,
    )
