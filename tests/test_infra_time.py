"""Tests for time utilities."""

from datetime import datetime, timedelta, timezone


class TestUtcNow:
    """Tests for utc_now()."""

    def test_returns_utc_datetime(self):
        from aurora.infra.time import utc_now

        now = utc_now()
        assert now.tzinfo == timezone.utc

    def test_returns_current_time(self):
        from aurora.infra.time import utc_now

        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)

        assert before <= now <= after


class TestAsUtc:
    def test_naive_is_assumed_utc(self):
        from aurora.infra.time import as_utc

        result = as_utc(datetime(2025, 11, 11, 9, 0))
        assert result == datetime(2025, 11, 11, 9, 0, tzinfo=timezone.utc)

    def test_other_offsets_are_converted(self):
        from aurora.infra.time import as_utc

        ecuador = timezone(timedelta(hours=-5))
        result = as_utc(datetime(2025, 11, 11, 9, 0, tzinfo=ecuador))

        assert result.tzinfo == timezone.utc
        assert result.hour == 14
