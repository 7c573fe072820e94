"""
Admission controller — fixed-window, per-user quota.

Decides allow/deny for a request before any paid model call is made,
and reports how many requests remain and when the window resets.

Design decisions:
  • Check BEFORE increment — denied requests (429) don't inflate counters.
  • Atomic per user — the check and increment happen under the user's
    record lock, so two racing requests can't both see the same count.
  • Fixed window, not sliding — a burst straddling a window boundary
    can admit up to 2 × limit in a short span. `reset_in_ms` is only
    meaningful under fixed-window semantics, so this is kept as is.
"""

from __future__ import annotations

import logging

from app.schemas.quota import QuotaDecision
from app.services.quota_store import Clock, QuotaStore, monotonic_ms

logger = logging.getLogger(__name__)


class AdmissionController:
    """
    Evaluate requests against a QuotaStore.

    Args:
        limit:     Requests admitted per user per window.
        window_ms: Window length in milliseconds.
        clock:     Millisecond clock; injectable for tests.
    """

    def __init__(self, limit: int, window_ms: int, clock: Clock = monotonic_ms) -> None:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        if window_ms <= 0:
            raise ValueError("window_ms must be > 0")
        self.limit = limit
        self.window_ms = window_ms
        self.store = QuotaStore(window_ms=window_ms, clock=clock)

    def evaluate(self, user_id: str) -> QuotaDecision:
        """Check-and-increment the quota for `user_id` atomically."""
        with self.store.locked(user_id) as (record, now):
            reset_in_ms = max(record.window_end(self.window_ms) - now, 0)

            if record.count < self.limit:
                record.count += 1
                return QuotaDecision(
                    allowed=True,
                    remaining=self.limit - record.count,
                    reset_in_ms=reset_in_ms,
                )

        logger.info("Quota exhausted for user %s (resets in %d ms)", user_id, reset_in_ms)
        return QuotaDecision(allowed=False, remaining=0, reset_in_ms=reset_in_ms)

    def peek(self, user_id: str) -> QuotaDecision:
        """
        Current quota state for `user_id` without consuming a request.

        An identity with no open window reports the full limit and
        `reset_in_ms=0`. No record is created.
        """
        now = self.store.clock()
        record = self.store.peek(user_id)
        if record is None or record.is_expired(now, self.window_ms):
            return QuotaDecision(allowed=True, remaining=self.limit, reset_in_ms=0)

        remaining = max(self.limit - record.count, 0)
        return QuotaDecision(
            allowed=remaining > 0,
            remaining=remaining,
            reset_in_ms=max(record.window_end(self.window_ms) - now, 0),
        )

    def remaining(self, user_id: str) -> int:
        """Remaining admissions for `user_id` without consuming one."""
        return self.peek(user_id).remaining

    def sweep(self) -> int:
        """Evict idle records whose windows have elapsed."""
        return self.store.evict_expired()
