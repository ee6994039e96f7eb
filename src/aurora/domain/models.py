"""Inbound event and reservation draft models.

ATENCIÓN PII:
- `sender_id`, `sender_name` and `raw_text` are PII
- Never log them raw; route identity fields through the masking codec
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

Channel = Literal["whatsapp", "web", "test"]


@dataclass(frozen=True)
class InboundMessageEvent:
    """One inbound chat message, as delivered by the webhook receiver."""

    sender_id: str
    raw_text: str
    received_at: datetime
    channel: Channel = "whatsapp"
    message_id: str | None = None
    sender_name: str | None = None


@dataclass(frozen=True)
class ReservationDraft:
    """Reservation under construction by the conversation layer.

    Only the time and amount fields are checked before confirmation;
    `date` is an ISO day string (YYYY-MM-DD) kept as the upstream sends it.
    """

    user_id: str
    start_time: str
    end_time: str
    total_price: float
    user_name: str | None = None
    date: str | None = None
    duration_hours: float | None = None
    service_type: str | None = None
    was_free: bool = False

    def is_free_booking(self) -> bool:
        """Check if this is a free booking (no charge expected)."""
        return self.was_free and self.total_price == 0


@dataclass(frozen=True)
class SlotSuggestion:
    """Free slot offered back to the user after a rejected time."""

    start_time: str
    end_time: str
    duration_hours: float
    recommended: bool = False
