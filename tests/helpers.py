"""Shared test helper functions for Aurora tests.

Mirror the mock user / reservation records the assistant's fixtures use.
These are NOT fixtures - they are regular functions.
"""

from __future__ import annotations

from datetime import datetime, timezone

from aurora.domain.models import InboundMessageEvent, ReservationDraft

TEST_SENDER = "+593999999999"


def make_event(**overrides) -> InboundMessageEvent:
    fields = {
        "sender_id": TEST_SENDER,
        "raw_text": "necesito una sala para mañana a las 9",
        "received_at": datetime.now(timezone.utc),
        "channel": "whatsapp",
    }
    fields.update(overrides)
    return InboundMessageEvent(**fields)


def make_draft(**overrides) -> ReservationDraft:
    """Mock reservation draft (paid by default)."""
    fields = {
        "user_id": TEST_SENDER,
        "user_name": "Test User",
        "date": "2025-11-12",
        "start_time": "09:00",
        "end_time": "11:00",
        "duration_hours": 2,
        "service_type": "hotDesk",
        "total_price": 50,
        "was_free": False,
    }
    fields.update(overrides)
    return ReservationDraft(**fields)


def draft_json(**overrides) -> dict:
    """Draft in the camelCase shape the conversation engine sends."""
    body = {
        "userId": TEST_SENDER,
        "userName": "Test User",
        "date": "2025-11-12",
        "startTime": "09:00",
        "endTime": "11:00",
        "durationHours": 2,
        "serviceType": "hotDesk",
        "totalPrice": 50,
        "wasFree": False,
    }
    body.update(overrides)
    return body


def wassenger_payload(
    body: str = "hola",
    from_number: str = TEST_SENDER,
    event: str = "message:in:new",
    message_id: str = "test-msg-001",
) -> dict:
    return {
        "event": event,
        "data": {
            "id": message_id,
            "fromNumber": from_number,
            "fromName": "Test User",
            "body": body,
            "timestamp": "2025-11-11T14:00:00Z",
            "type": "text",
            "device": {"id": "test-device", "alias": "Test Device"},
        },
    }
