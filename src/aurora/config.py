"""Admission settings for the Aurora session gate.

Tunable constants live here instead of being hard-coded in the validators,
so a tenant can adjust limits through environment variables without code
changes.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

ENV_PREFIX = "AURORA_"

_FLOAT_FIELDS = (
    "rate_window_seconds",
    "min_amount",
    "max_amount",
    "min_duration_hours",
    "max_duration_hours",
    "stale_window_seconds",
    "sweep_interval_seconds",
)


@dataclass(frozen=True)
class GateSettings:
    """Limits applied by the session gate.

    Attributes:
        max_messages_per_minute: Admitted messages per sender per window.
        rate_window_seconds: Length of one rate-limit window.
        min_amount: Exclusive lower bound for a reservation amount.
        max_amount: Inclusive upper bound for a reservation amount.
        business_hour_start: First bookable hour (inclusive).
        business_hour_end: Last bookable hour (inclusive).
        min_duration_hours: Shortest allowed booking.
        max_duration_hours: Longest allowed booking.
        stale_window_seconds: Age after which an idle rate window is evicted.
        sweep_interval_seconds: Eviction period; 0 disables the sweeper.
    """

    max_messages_per_minute: int = 5
    rate_window_seconds: float = 60.0
    min_amount: float = 0.0
    max_amount: float = 1000.0
    business_hour_start: int = 8
    business_hour_end: int = 18
    min_duration_hours: float = 1.0
    max_duration_hours: float = 8.0
    stale_window_seconds: float = 600.0
    sweep_interval_seconds: float = 60.0

    def __post_init__(self) -> None:
        for name in _FLOAT_FIELDS:
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be a finite number")
        if self.max_messages_per_minute < 1:
            raise ValueError("max_messages_per_minute must be at least 1")
        if self.rate_window_seconds <= 0:
            raise ValueError("rate_window_seconds must be positive")
        if self.min_amount >= self.max_amount:
            raise ValueError("min_amount must be lower than max_amount")
        if not (0 <= self.business_hour_start <= self.business_hour_end <= 23):
            raise ValueError("business hours must satisfy 0 <= start <= end <= 23")
        if self.min_duration_hours > self.max_duration_hours:
            raise ValueError("min_duration_hours must not exceed max_duration_hours")


def load_settings(environ: dict[str, str] | None = None) -> GateSettings:
    """Build GateSettings from environment variables.

    Priority:
    1. AURORA_* environment variables
    2. GateSettings defaults

    Args:
        environ: Mapping to read from (defaults to os.environ).

    Raises:
        ValueError: If a variable is set but not a number, or the resulting
            settings are inconsistent.
    """
    env = os.environ if environ is None else environ
    defaults = GateSettings()
    return GateSettings(
        max_messages_per_minute=_int(env, "MAX_MESSAGES_PER_MINUTE", defaults.max_messages_per_minute),
        rate_window_seconds=_float(env, "RATE_WINDOW_SECONDS", defaults.rate_window_seconds),
        min_amount=_float(env, "MIN_AMOUNT", defaults.min_amount),
        max_amount=_float(env, "MAX_AMOUNT", defaults.max_amount),
        business_hour_start=_int(env, "BUSINESS_HOUR_START", defaults.business_hour_start),
        business_hour_end=_int(env, "BUSINESS_HOUR_END", defaults.business_hour_end),
        min_duration_hours=_float(env, "MIN_DURATION_HOURS", defaults.min_duration_hours),
        max_duration_hours=_float(env, "MAX_DURATION_HOURS", defaults.max_duration_hours),
        stale_window_seconds=_float(env, "STALE_WINDOW_SECONDS", defaults.stale_window_seconds),
        sweep_interval_seconds=_float(env, "SWEEP_INTERVAL_SECONDS", defaults.sweep_interval_seconds),
    )


def _raw(env: dict[str, str], name: str) -> str | None:
    value = env.get(ENV_PREFIX + name, "").strip()
    return value or None


def _int(env: dict[str, str], name: str, default: int) -> int:
    raw = _raw(env, name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer") from None


def _float(env: dict[str, str], name: str, default: float) -> float:
    raw = _raw(env, name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number") from None
    if not math.isfinite(value):
        raise ValueError(f"{ENV_PREFIX}{name} must be a finite number")
    return value
