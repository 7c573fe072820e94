"""
In-process quota store — one fixed-window counter per user identity.

Design decisions:
  • Per-identity locks — the registry lock is only held to get-or-create
    or evict a record, so users never wait on each other's evaluations.
  • Lazy reset — a record whose window has elapsed is reset in place the
    next time it is touched; nothing runs on a timer per user.
  • Evictable — `evict_expired` drops records whose window is over. An
    evicted record is flagged dead under its own lock, and `locked()`
    retries against a fresh record if it lost that race, so eviction can
    never lose an increment inside an active window.
  • Process-local — several instances each enforce the limit on their
    own view. Shared counters are out of scope.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def monotonic_ms() -> int:
    """Default clock: monotonic milliseconds (immune to wall-clock jumps)."""
    return time.monotonic_ns() // 1_000_000


@dataclass(slots=True)
class UserQuota:
    """Counter record for one identity.

    Attributes:
        user_id:      Opaque identity the record belongs to.
        window_start: Millisecond timestamp of the current window start.
        count:        Requests admitted in the current window.
    """

    user_id: str
    window_start: int
    count: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
    _evicted: bool = field(default=False, repr=False, compare=False)

    def window_end(self, window_ms: int) -> int:
        return self.window_start + window_ms

    def is_expired(self, now: int, window_ms: int) -> bool:
        return now >= self.window_end(window_ms)

    def roll_window(self, now: int, window_ms: int) -> None:
        """Reset the counter if the fixed window has elapsed."""
        if self.is_expired(now, window_ms):
            self.count = 0
            self.window_start = now


class QuotaStore:
    """Concurrent map of user_id → UserQuota with per-key locking."""

    def __init__(self, window_ms: int, clock: Clock = monotonic_ms) -> None:
        if window_ms <= 0:
            raise ValueError("window_ms must be > 0")
        self.window_ms = window_ms
        self.clock = clock
        self._records: dict[str, UserQuota] = {}
        self._registry_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def _get_or_create(self, user_id: str) -> UserQuota:
        with self._registry_lock:
            record = self._records.get(user_id)
            if record is None:
                record = UserQuota(user_id=user_id, window_start=self.clock())
                self._records[user_id] = record
                logger.debug("Created quota record for %s", user_id)
            return record

    @contextmanager
    def locked(self, user_id: str) -> Iterator[tuple[UserQuota, int]]:
        """
        Hold the record for `user_id` exclusively.

        Yields the live record (already rolled to the current window) and
        the `now` used to roll it. Callers may mutate `count` freely while
        inside the block.
        """
        while True:
            record = self._get_or_create(user_id)
            with record._lock:
                if record._evicted:
                    continue  # lost a race with evict_expired; take the new record
                now = self.clock()
                record.roll_window(now, self.window_ms)
                yield record, now
                return

    def peek(self, user_id: str) -> UserQuota | None:
        """Snapshot of a record, or None if the identity was never seen."""
        record = self._records.get(user_id)
        if record is None:
            return None
        with record._lock:
            return replace(record, _lock=threading.Lock())

    def evict_expired(self, now: int | None = None) -> int:
        """
        Drop every record whose window has fully elapsed.

        Records that are currently locked by an evaluation are skipped;
        they will be picked up by a later sweep.

        Returns:
            Number of records removed.
        """
        now = self.clock() if now is None else now
        evicted = 0
        with self._registry_lock:
            for user_id, record in list(self._records.items()):
                if not record._lock.acquire(blocking=False):
                    continue
                try:
                    if record.is_expired(now, self.window_ms):
                        record._evicted = True
                        del self._records[user_id]
                        evicted += 1
                finally:
                    record._lock.release()
        if evicted:
            logger.debug("Evicted %d idle quota record(s)", evicted)
        return evicted
