"""Admission verdicts and the rejection taxonomy.

Rejections are returned, not raised: the conversation layer re-prompts the
sender (or stays silent when rate limited) based on `reason`.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .models import InboundMessageEvent, ReservationDraft


class RejectionReason(str, Enum):
    INVALID_PHONE_FORMAT = "invalid_phone_format"
    INVALID_EMAIL_FORMAT = "invalid_email_format"
    INVALID_TIME_FORMAT = "invalid_time_format"
    OUTSIDE_BUSINESS_HOURS = "outside_business_hours"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_DURATION = "invalid_duration"
    RATE_LIMITED = "rate_limited"
    CREDENTIAL_LEAK_ATTEMPT = "credential_leak_attempt"


LUNCH_BREAK_WARNING = "overlaps_lunch_break"


class AmountIssue(str, Enum):
    """Sub-reason carried by INVALID_AMOUNT rejections."""

    TOO_LOW = "too_low"
    TOO_HIGH = "too_high"
    NOT_NUMERIC = "not_numeric"


@dataclass(frozen=True)
class Admitted:
    """Event (and optional draft) may proceed to booking logic."""

    event: InboundMessageEvent
    draft: ReservationDraft | None = None
    warnings: tuple[str, ...] = ()

    admitted = True


@dataclass(frozen=True)
class Rejected:
    """Event was stopped at the gate.

    `detail` never contains raw PII; it holds only the offending field name,
    limits and sub-reasons.
    """

    reason: RejectionReason
    detail: dict[str, Any] = field(default_factory=dict)

    admitted = False

    @property
    def suppress_reply(self) -> bool:
        """Rate-limited senders get no reply until the window clears."""
        return self.reason is RejectionReason.RATE_LIMITED

    @property
    def retry_after_seconds(self) -> float | None:
        return self.detail.get("retry_after_seconds")


Verdict = Admitted | Rejected
