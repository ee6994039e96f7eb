"""Session gate: single admission point before booking logic.

Checks run in a fixed order and stop at the first failure:

    rate limit -> sender phone -> time format -> business hours
    -> amount -> duration

Rate limiting runs first so abusive traffic is turned away before any other
work. Changing the order changes which reason a caller sees when several
checks fail at once.
"""

from __future__ import annotations

from datetime import datetime

from aurora.config import GateSettings
from aurora.observability.logging import get_logger
from aurora.observability.redaction import safe_log_context

from .models import InboundMessageEvent, ReservationDraft
from .rate_limit import RateLimiter, RateWindowStore
from .validators import (
    classify_amount,
    duration_hours_between,
    is_valid_duration,
    is_valid_email,
    is_valid_phone,
    is_valid_time_format,
    is_within_business_hours,
    overlaps_lunch_break,
)
from .verdicts import LUNCH_BREAK_WARNING, Admitted, Rejected, RejectionReason, Verdict

logger = get_logger(__name__)


class SessionGate:
    """Compose the rate limiter and validators into one verdict."""

    def __init__(
        self,
        settings: GateSettings | None = None,
        rate_limiter: RateLimiter | None = None,
        store: RateWindowStore | None = None,
    ) -> None:
        self.settings = settings or GateSettings()
        if rate_limiter is None:
            rate_limiter = RateLimiter(
                store=store,
                max_messages_per_minute=self.settings.max_messages_per_minute,
                window_seconds=self.settings.rate_window_seconds,
            )
        self.rate_limiter = rate_limiter

    def check(
        self,
        event: InboundMessageEvent,
        draft: ReservationDraft | None = None,
        now: datetime | None = None,
    ) -> Verdict:
        """Decide whether `event` (and `draft`, if given) may proceed.

        Args:
            event: Inbound message being processed.
            draft: Reservation draft to validate before confirmation.
            now: Admission time; defaults to `event.received_at`.

        Returns:
            Admitted or Rejected. Validation failures are never raised.

        Raises:
            TypeError: If event/draft are not the expected types.
        """
        if not isinstance(event, InboundMessageEvent):
            raise TypeError(f"event must be InboundMessageEvent, got {type(event).__name__}")
        if draft is not None and not isinstance(draft, ReservationDraft):
            raise TypeError(f"draft must be ReservationDraft, got {type(draft).__name__}")

        decision = self.rate_limiter.admit(event.sender_id, now or event.received_at)
        if not decision.allowed:
            return self._reject(
                event,
                RejectionReason.RATE_LIMITED,
                retry_after_seconds=decision.retry_after_seconds,
            )

        if not is_valid_phone(event.sender_id):
            return self._reject(event, RejectionReason.INVALID_PHONE_FORMAT, field="sender_id")

        if draft is None:
            return Admitted(event=event)

        rejected = self._check_draft(event, draft)
        if rejected is not None:
            return rejected

        warnings: tuple[str, ...] = ()
        if overlaps_lunch_break(draft.start_time, draft.end_time):
            warnings = (LUNCH_BREAK_WARNING,)
        return Admitted(event=event, draft=draft, warnings=warnings)

    def _check_draft(self, event: InboundMessageEvent, draft: ReservationDraft) -> Rejected | None:
        s = self.settings

        for name, value in (("start_time", draft.start_time), ("end_time", draft.end_time)):
            if not is_valid_time_format(value):
                return self._reject(event, RejectionReason.INVALID_TIME_FORMAT, field=name)

        for name, value in (("start_time", draft.start_time), ("end_time", draft.end_time)):
            if not is_within_business_hours(value, s.business_hour_start, s.business_hour_end):
                return self._reject(
                    event,
                    RejectionReason.OUTSIDE_BUSINESS_HOURS,
                    field=name,
                    business_hour_start=s.business_hour_start,
                    business_hour_end=s.business_hour_end,
                )

        if not draft.is_free_booking():
            issue = classify_amount(draft.total_price, s.min_amount, s.max_amount)
            if issue is not None:
                return self._reject(
                    event,
                    RejectionReason.INVALID_AMOUNT,
                    field="total_price",
                    issue=issue,
                    min_amount=s.min_amount,
                    max_amount=s.max_amount,
                )

        hours = duration_hours_between(draft.start_time, draft.end_time)
        if hours is None or hours <= 0 or not is_valid_duration(
            hours, s.min_duration_hours, s.max_duration_hours
        ):
            return self._reject(
                event,
                RejectionReason.INVALID_DURATION,
                field="end_time",
                duration_hours=hours,
                min_duration_hours=s.min_duration_hours,
                max_duration_hours=s.max_duration_hours,
            )

        return None

    def check_contact_email(self, email: object) -> Rejected | None:
        """Validate an email collected during the conversation."""
        if is_valid_email(email):
            return None
        return Rejected(RejectionReason.INVALID_EMAIL_FORMAT, {"field": "email"})

    def _reject(self, event: InboundMessageEvent, reason: RejectionReason, **detail) -> Rejected:
        logger.info(
            "inbound event rejected",
            extra={
                "extra_fields": safe_log_context(
                    sender=event.sender_id,
                    channel=event.channel,
                    reason=reason.value,
                    field=detail.get("field"),
                )
            },
        )
        return Rejected(reason=reason, detail=detail)
