"""Per-sender admission control.

Each sender gets a fixed window (default 60s) counting admitted messages.
The read-compare-increment for one sender runs under that sender's shard
lock, so two concurrent admissions can never both take the last slot.

The window store is injected: tests build isolated instances, and a shared
store (e.g. a cache) can replace the in-memory one without changing callers.
"""

from __future__ import annotations

import hashlib
import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from aurora.infra.time import utc_now
from aurora.observability.logging import get_logger
from aurora.observability.redaction import safe_log_context

logger = get_logger(__name__)

DEFAULT_MAX_MESSAGES_PER_MINUTE = 5
DEFAULT_WINDOW_SECONDS = 60.0
DEFAULT_STALE_AGE = timedelta(minutes=10)
DEFAULT_SHARD_COUNT = 64


@dataclass(frozen=True)
class RateWindow:
    """Admitted message count inside the window starting at `started_at`."""

    count: int
    started_at: datetime


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    remaining: int
    retry_after_seconds: float = 0.0


class RateWindowStore(Protocol):
    """Storage for rate windows.

    `get`/`set` for a sender must only be called while holding
    `locked(sender_id)`.
    """

    def locked(self, sender_id: str) -> AbstractContextManager[None]: ...

    def get(self, sender_id: str) -> RateWindow | None: ...

    def set(self, sender_id: str, window: RateWindow) -> None: ...

    def evict_older_than(self, cutoff: datetime) -> int: ...


class _Shard:
    __slots__ = ("lock", "windows")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.windows: dict[str, RateWindow] = {}


class ShardedRateWindowStore:
    """In-memory store split into independently locked shards.

    Senders on different shards never contend. Shards and their locks live
    as long as the store, so eviction never races with lock acquisition.
    """

    def __init__(self, shard_count: int = DEFAULT_SHARD_COUNT) -> None:
        if shard_count < 1:
            raise ValueError("shard_count must be at least 1")
        self._shards = [_Shard() for _ in range(shard_count)]

    def _shard(self, sender_id: str) -> _Shard:
        # hash() is salted per process; a stable digest keeps shard
        # placement reproducible in tests
        digest = hashlib.blake2b(sender_id.encode(), digest_size=8).digest()
        return self._shards[int.from_bytes(digest, "big") % len(self._shards)]

    @contextmanager
    def locked(self, sender_id: str) -> Iterator[None]:
        with self._shard(sender_id).lock:
            yield

    def get(self, sender_id: str) -> RateWindow | None:
        return self._shard(sender_id).windows.get(sender_id)

    def set(self, sender_id: str, window: RateWindow) -> None:
        self._shard(sender_id).windows[sender_id] = window

    def evict_older_than(self, cutoff: datetime) -> int:
        """Drop windows started before `cutoff`. Holds one shard lock at a time."""
        evicted = 0
        for shard in self._shards:
            with shard.lock:
                stale = [s for s, w in shard.windows.items() if w.started_at < cutoff]
                for sender_id in stale:
                    del shard.windows[sender_id]
                evicted += len(stale)
        return evicted

    def __len__(self) -> int:
        return sum(len(shard.windows) for shard in self._shards)


class RateLimiter:
    """Fixed-window limiter keyed by sender id."""

    def __init__(
        self,
        store: RateWindowStore | None = None,
        max_messages_per_minute: int = DEFAULT_MAX_MESSAGES_PER_MINUTE,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
    ) -> None:
        if max_messages_per_minute < 1:
            raise ValueError("max_messages_per_minute must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.store: RateWindowStore = store if store is not None else ShardedRateWindowStore()
        self.max_messages = max_messages_per_minute
        self.window = timedelta(seconds=window_seconds)

    def admit(self, sender_id: str, now: datetime | None = None) -> RateDecision:
        """Decide whether one more message from `sender_id` is admitted.

        An expired (or missing) window is reset lazily here. A rejected
        message does not increment the count.

        Raises:
            TypeError: If sender_id is not a string.
        """
        if not isinstance(sender_id, str):
            raise TypeError(f"sender_id must be str, got {type(sender_id).__name__}")
        now = now or utc_now()

        with self.store.locked(sender_id):
            current = self.store.get(sender_id)

            if current is None or now - current.started_at >= self.window:
                self.store.set(sender_id, RateWindow(count=1, started_at=now))
                return RateDecision(allowed=True, remaining=self.max_messages - 1)

            if current.count < self.max_messages:
                count = current.count + 1
                self.store.set(sender_id, RateWindow(count=count, started_at=current.started_at))
                return RateDecision(allowed=True, remaining=self.max_messages - count)

            elapsed = now - current.started_at
            # clock skew can make elapsed negative; never promise more than one window
            retry_after = min(self.window - elapsed, self.window).total_seconds()

        logger.info(
            "sender rate limited",
            extra={
                "extra_fields": safe_log_context(
                    sender=sender_id,
                    retry_after_seconds=round(retry_after, 3),
                )
            },
        )
        return RateDecision(allowed=False, remaining=0, retry_after_seconds=retry_after)

    def evict_stale(self, now: datetime | None = None, max_age: timedelta = DEFAULT_STALE_AGE) -> int:
        """Drop windows older than `max_age`. Memory hygiene only."""
        now = now or utc_now()
        # a window younger than its own length may still be counting
        cutoff = now - max(max_age, self.window)
        evicted = self.store.evict_older_than(cutoff)
        if evicted:
            logger.info(
                "stale rate windows evicted",
                extra={"extra_fields": safe_log_context(evicted=evicted)},
            )
        return evicted


class RateWindowSweeper:
    """Background thread that periodically evicts stale windows.

    Runs as a daemon so it never blocks interpreter shutdown.
    """

    def __init__(
        self,
        limiter: RateLimiter,
        interval_seconds: float,
        max_age: timedelta = DEFAULT_STALE_AGE,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._limiter = limiter
        self._interval = interval_seconds
        self._max_age = max_age
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="aurora-rate-sweeper", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self._limiter.evict_stale(max_age=self._max_age)
            except Exception:
                # keep sweeping; a failed pass only delays hygiene
                logger.exception("rate window sweep failed")
