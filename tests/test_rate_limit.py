"""Tests for per-sender rate limiting.

Concurrency tests use threading.Barrier so all admissions start together.
"""

import threading
from datetime import timedelta

import pytest

from aurora.domain.rate_limit import (
    RateLimiter,
    RateWindow,
    RateWindowSweeper,
    ShardedRateWindowStore,
)

SENDER = "+593999999999"
OTHER = "+593987770788"


class TestAdmit:
    def test_six_in_one_window_gives_five_admitted(self, t0):
        limiter = RateLimiter()

        decisions = [limiter.admit(SENDER, t0 + timedelta(seconds=i)) for i in range(6)]

        assert [d.allowed for d in decisions] == [True] * 5 + [False]

    def test_remaining_counts_down(self, t0):
        limiter = RateLimiter()

        remaining = [limiter.admit(SENDER, t0).remaining for _ in range(5)]

        assert remaining == [4, 3, 2, 1, 0]

    def test_retry_after_is_time_left_in_window(self, t0):
        limiter = RateLimiter()
        for _ in range(5):
            limiter.admit(SENDER, t0)

        decision = limiter.admit(SENDER, t0 + timedelta(seconds=20))

        assert decision.allowed is False
        assert decision.retry_after_seconds == pytest.approx(40.0)

    def test_rejection_does_not_increment(self, t0):
        store = ShardedRateWindowStore()
        limiter = RateLimiter(store=store)
        for _ in range(8):
            limiter.admit(SENDER, t0)

        assert store.get(SENDER).count == 5

    def test_window_resets_after_expiry(self, t0):
        limiter = RateLimiter()
        for _ in range(6):
            limiter.admit(SENDER, t0)

        decision = limiter.admit(SENDER, t0 + timedelta(seconds=60))

        assert decision.allowed is True
        assert decision.remaining == 4

    def test_senders_are_independent(self, t0):
        limiter = RateLimiter()
        for _ in range(6):
            limiter.admit(SENDER, t0)

        assert limiter.admit(OTHER, t0).allowed is True

    def test_custom_limit_and_window(self, t0):
        limiter = RateLimiter(max_messages_per_minute=2, window_seconds=10)

        assert limiter.admit(SENDER, t0).allowed is True
        assert limiter.admit(SENDER, t0).allowed is True
        assert limiter.admit(SENDER, t0 + timedelta(seconds=5)).allowed is False
        assert limiter.admit(SENDER, t0 + timedelta(seconds=10)).allowed is True

    def test_clock_skew_never_exceeds_one_window(self, t0):
        limiter = RateLimiter()
        for _ in range(5):
            limiter.admit(SENDER, t0)

        decision = limiter.admit(SENDER, t0 - timedelta(seconds=30))

        assert decision.allowed is False
        assert decision.retry_after_seconds == pytest.approx(60.0)

    def test_isolated_instances_do_not_share_state(self, t0):
        first = RateLimiter()
        for _ in range(6):
            first.admit(SENDER, t0)

        assert RateLimiter().admit(SENDER, t0).allowed is True

    def test_non_string_sender_is_contract_violation(self, t0):
        with pytest.raises(TypeError):
            RateLimiter().admit(593999999999, t0)

    @pytest.mark.parametrize("kwargs", [{"max_messages_per_minute": 0}, {"window_seconds": 0}])
    def test_invalid_configuration(self, kwargs):
        with pytest.raises(ValueError):
            RateLimiter(**kwargs)


class TestConcurrency:
    def test_last_slot_admits_exactly_one(self, t0):
        """Four admitted already; N threads race for the fifth slot."""
        limiter = RateLimiter()
        for _ in range(4):
            limiter.admit(SENDER, t0)

        n_threads = 16
        barrier = threading.Barrier(n_threads)
        results: list[bool] = []
        results_lock = threading.Lock()

        def worker():
            barrier.wait()
            decision = limiter.admit(SENDER, t0 + timedelta(seconds=1))
            with results_lock:
                results.append(decision.allowed)

        threads = [threading.Thread(target=worker) for _ in range(n_threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert len(results) == n_threads
        assert results.count(True) == 1

    def test_many_senders_in_parallel(self, t0):
        limiter = RateLimiter()
        senders = [f"+59399900{i:04d}" for i in range(20)]
        barrier = threading.Barrier(len(senders))
        admitted: dict[str, int] = {}
        lock = threading.Lock()

        def worker(sender):
            barrier.wait()
            count = sum(limiter.admit(sender, t0).allowed for _ in range(7))
            with lock:
                admitted[sender] = count

        threads = [threading.Thread(target=worker, args=(s,)) for s in senders]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert admitted == {s: 5 for s in senders}


class TestEviction:
    def test_evicts_only_stale_windows(self, t0):
        store = ShardedRateWindowStore()
        limiter = RateLimiter(store=store)
        limiter.admit(SENDER, t0)
        limiter.admit(OTHER, t0 + timedelta(minutes=9))

        evicted = limiter.evict_stale(now=t0 + timedelta(minutes=11), max_age=timedelta(minutes=10))

        assert evicted == 1
        assert store.get(SENDER) is None
        assert store.get(OTHER) is not None
        assert len(store) == 1

    def test_never_evicts_an_open_window(self, t0):
        store = ShardedRateWindowStore()
        limiter = RateLimiter(store=store)
        limiter.admit(SENDER, t0)

        evicted = limiter.evict_stale(now=t0 + timedelta(seconds=30), max_age=timedelta(seconds=1))

        assert evicted == 0
        assert store.get(SENDER) is not None

    def test_store_round_trip_under_lock(self, t0):
        store = ShardedRateWindowStore(shard_count=1)
        with store.locked(SENDER):
            store.set(SENDER, RateWindow(count=3, started_at=t0))
            assert store.get(SENDER) == RateWindow(count=3, started_at=t0)

    def test_invalid_shard_count(self):
        with pytest.raises(ValueError):
            ShardedRateWindowStore(shard_count=0)


class TestSweeper:
    def test_sweeper_calls_evict(self):
        swept = threading.Event()

        class _Limiter:
            def evict_stale(self, now=None, max_age=None):
                swept.set()
                return 0

        sweeper = RateWindowSweeper(_Limiter(), interval_seconds=0.01)
        sweeper.start()
        try:
            assert swept.wait(timeout=5)
        finally:
            sweeper.stop(timeout=5)

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            RateWindowSweeper(RateLimiter(), interval_seconds=0)
