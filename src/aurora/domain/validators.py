"""Pure validation predicates for inbound reservation data.

Every predicate is total over arbitrary input: malformed values, None and
type mismatches resolve to False (or None for the helpers returning values)
instead of raising.
"""

import math
import re
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from decimal import Decimal

from .models import ReservationDraft, SlotSuggestion
from .verdicts import AmountIssue

DEFAULT_BUSINESS_HOUR_START = 8
DEFAULT_BUSINESS_HOUR_END = 18
DEFAULT_MIN_AMOUNT = 0.0  # exclusive
DEFAULT_MAX_AMOUNT = 1000.0
DEFAULT_MIN_DURATION_HOURS = 1.0
DEFAULT_MAX_DURATION_HOURS = 8.0
DEFAULT_MIN_ADVANCE_HOURS = 2
DEFAULT_MAX_ADVANCE_DAYS = 30
DEFAULT_LUNCH_BREAK = ("12:30", "14:00")
SLOT_STEP_MINUTES = 30
MAX_SLOT_SUGGESTIONS = 5
RECOMMENDED_SLOTS = 3

# re.ASCII keeps \d and \s from matching non-latin digits/spaces
_PHONE_PATTERN = re.compile(r"\+\d{10,15}", re.ASCII)
_EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+", re.ASCII)
_TIME_PATTERN = re.compile(r"([01][0-9]|2[0-3]):([0-5][0-9])")


def is_valid_phone(value: object) -> bool:
    """Check canonical sender format: '+' followed by 10-15 digits."""
    return isinstance(value, str) and _PHONE_PATTERN.fullmatch(value) is not None


def is_valid_email(value: object) -> bool:
    """Permissive email shape check (not RFC 5322)."""
    return isinstance(value, str) and _EMAIL_PATTERN.fullmatch(value) is not None


def is_valid_time_format(value: object) -> bool:
    """Check 24-hour HH:MM."""
    return isinstance(value, str) and _TIME_PATTERN.fullmatch(value) is not None


def _minutes(value: object) -> int | None:
    """Minutes since midnight for a valid HH:MM, else None."""
    if not isinstance(value, str):
        return None
    match = _TIME_PATTERN.fullmatch(value)
    if match is None:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def is_within_business_hours(
    value: object,
    start_hour: int = DEFAULT_BUSINESS_HOUR_START,
    end_hour: int = DEFAULT_BUSINESS_HOUR_END,
) -> bool:
    """Check the hour component lies in [start_hour, end_hour].

    Both bounds are inclusive, so "18:45" passes with the default end of 18.
    Malformed times fail closed.
    """
    minutes = _minutes(value)
    if minutes is None:
        return False
    return start_hour <= minutes // 60 <= end_hour


def _as_number(value: object) -> float | None:
    # bool is an int subclass; True is not a price
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return None
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError:
            # beyond float range; only the sign matters against the bounds
            return math.inf if value > 0 else -math.inf
    try:
        return float(value)
    except ValueError:
        # signalling NaN Decimals refuse conversion
        return None


def classify_amount(
    value: object,
    min_amount: float = DEFAULT_MIN_AMOUNT,
    max_amount: float = DEFAULT_MAX_AMOUNT,
) -> AmountIssue | None:
    """Return why an amount is invalid, or None when it is acceptable."""
    number = _as_number(value)
    if number is None or math.isnan(number):
        return AmountIssue.NOT_NUMERIC
    if number <= min_amount:
        return AmountIssue.TOO_LOW
    if number > max_amount:
        return AmountIssue.TOO_HIGH
    return None


def is_valid_amount(
    value: object,
    min_amount: float = DEFAULT_MIN_AMOUNT,
    max_amount: float = DEFAULT_MAX_AMOUNT,
) -> bool:
    """Check min_amount < value <= max_amount."""
    return classify_amount(value, min_amount, max_amount) is None


def duration_hours_between(start: object, end: object) -> float | None:
    """Hours from start to end (may be negative); None if either is malformed."""
    start_minutes = _minutes(start)
    end_minutes = _minutes(end)
    if start_minutes is None or end_minutes is None:
        return None
    return (end_minutes - start_minutes) / 60


def is_valid_duration(
    hours: object,
    min_hours: float = DEFAULT_MIN_DURATION_HOURS,
    max_hours: float = DEFAULT_MAX_DURATION_HOURS,
) -> bool:
    number = _as_number(hours)
    if number is None or not math.isfinite(number):
        return False
    return min_hours <= number <= max_hours


def overlaps_lunch_break(
    start: object,
    end: object,
    lunch_start: str = DEFAULT_LUNCH_BREAK[0],
    lunch_end: str = DEFAULT_LUNCH_BREAK[1],
) -> bool:
    """Check whether [start, end) intersects the lunch break.

    Only used to attach a warning; an overlap never blocks a booking.
    """
    start_minutes = _minutes(start)
    end_minutes = _minutes(end)
    lunch_from = _minutes(lunch_start)
    lunch_to = _minutes(lunch_end)
    if None in (start_minutes, end_minutes, lunch_from, lunch_to):
        return False
    return start_minutes < lunch_to and end_minutes > lunch_from


def _as_day(value: object) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None
    return None


def is_within_booking_window(
    day: object,
    start: object,
    now: datetime,
    min_advance_hours: float = DEFAULT_MIN_ADVANCE_HOURS,
    max_advance_days: float = DEFAULT_MAX_ADVANCE_DAYS,
) -> bool:
    """Check a booking is neither too soon nor too far ahead.

    Args:
        day: ISO date string (YYYY-MM-DD) or date.
        start: HH:MM start time, in the same local time as `now`.
        now: Reference time. Any tzinfo is dropped so `day`/`start` are
            compared as wall-clock values in the business' own timezone.
    """
    minutes = _minutes(start)
    day = _as_day(day)
    if minutes is None or day is None:
        return False

    starts_at = datetime(day.year, day.month, day.day) + timedelta(minutes=minutes)
    ahead = starts_at - now.replace(tzinfo=None)
    if ahead < timedelta(hours=min_advance_hours):
        return False
    return ahead <= timedelta(days=max_advance_days)


def _hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def suggest_alternative_slots(
    day: object,
    duration_hours: object,
    existing: Iterable[ReservationDraft] = (),
    now: datetime | None = None,
    start_hour: int = DEFAULT_BUSINESS_HOUR_START,
    end_hour: int = DEFAULT_BUSINESS_HOUR_END,
    min_hours: float = DEFAULT_MIN_DURATION_HOURS,
    max_hours: float = DEFAULT_MAX_DURATION_HOURS,
) -> list[SlotSuggestion]:
    """Free slots of `duration_hours` on `day`, in 30-minute steps.

    A slot qualifies when both ends fall within business hours and it does
    not overlap a draft in `existing` booked for the same day. When `now` is
    given the slot must also be inside the booking window. At most
    MAX_SLOT_SUGGESTIONS are returned, the first RECOMMENDED_SLOTS flagged
    as recommended.

    Returns an empty list for a malformed day or an invalid duration.
    """
    parsed_day = _as_day(day)
    if parsed_day is None or not is_valid_duration(duration_hours, min_hours, max_hours):
        return []
    hours = _as_number(duration_hours)
    length = round(hours * 60)
    day_iso = parsed_day.isoformat()

    busy = []
    for draft in existing:
        if draft.date != day_iso:
            continue
        busy_from, busy_to = _minutes(draft.start_time), _minutes(draft.end_time)
        if busy_from is not None and busy_to is not None:
            busy.append((busy_from, busy_to))

    # last bookable hour is inclusive, so the day closes at end_hour + 1
    close_at = min((end_hour + 1) * 60, 24 * 60)
    slots: list[SlotSuggestion] = []
    for begin in range(start_hour * 60, close_at, SLOT_STEP_MINUTES):
        finish = begin + length
        if finish >= close_at:
            break
        if any(begin < busy_to and finish > busy_from for busy_from, busy_to in busy):
            continue
        if now is not None and not is_within_booking_window(parsed_day, _hhmm(begin), now):
            continue
        slots.append(
            SlotSuggestion(
                start_time=_hhmm(begin),
                end_time=_hhmm(finish),
                duration_hours=hours,
                recommended=len(slots) < RECOMMENDED_SLOTS,
            )
        )
        if len(slots) == MAX_SLOT_SUGGESTIONS:
            break
    return slots
