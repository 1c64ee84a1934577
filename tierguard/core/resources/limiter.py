#!/usr/bin/env python3
"""
tierguard Core Resources — Rate Limiters
==========================================
Two independent limiters backed by the bypass state store:

- FailureBackoff: step-function lockout after consecutive failed
  passphrase verifications (0s for 1-2, 60s at 3, 300s at 4, 900s at 5,
  3600s for 6-9, manual reset from 10). Success resets the counter.
- OperationRateLimiter: fixed 60-second window capping bypass-covered
  operations while bypass is active. Exceeding it is a transient block,
  not a state change.

Both hold the store lock across their read-modify-write so concurrent
hook invocations do not lose updates.

Import from: tierguard.core.resources.limiter
"""

import logging
import time
from typing import Callable, Tuple

from tierguard.core.constants import (
    DEFAULT_OPERATION_RATE_LIMIT, FAILURE_LOCKOUT_SCHEDULE,
    OPERATION_RATE_WINDOW, PERMANENT_LOCKOUT,
)
from tierguard.core.types import FailureRecord, RateLimitedError, RateWindow

logger = logging.getLogger("tierguard.core.resources.limiter")


def lockout_for(failures: int) -> int:
    """Lockout seconds after `failures` consecutive failures.

    Returns PERMANENT_LOCKOUT once the top of the schedule is reached.
    """
    for threshold, seconds in FAILURE_LOCKOUT_SCHEDULE:
        if failures >= threshold:
            return seconds
    return 0


class FailureBackoff:
    """Authentication-failure lockout."""

    def __init__(self, store, clock: Callable[[], float] = time.time):
        self.store = store
        self._clock = clock

    def _now(self) -> int:
        return int(self._clock())

    def remaining(self) -> int:
        """Seconds left on the current lockout, 0 if none, -1 if permanent."""
        record = self.store.read_failures()
        lockout = lockout_for(record.count)
        if lockout == PERMANENT_LOCKOUT:
            return PERMANENT_LOCKOUT
        if lockout == 0:
            return 0
        return max(0, record.last_failure + lockout - self._now())

    def check(self) -> None:
        """Raise RateLimitedError while a lockout is in force."""
        remaining = self.remaining()
        if remaining == PERMANENT_LOCKOUT:
            raise RateLimitedError(
                "Bypass is locked after too many failed attempts. "
                "Run 'tierguard bypass reset-lockout' from a terminal.",
                remaining=PERMANENT_LOCKOUT, permanent=True,
            )
        if remaining > 0:
            raise RateLimitedError(
                f"Too many failed attempts. Try again in {remaining} seconds.",
                remaining=remaining,
            )

    def record_failure(self) -> FailureRecord:
        with self.store.locked():
            record = self.store.read_failures()
            record.count += 1
            record.last_failure = self._now()
            self.store.write_failures(record)
        logger.warning("Bypass authentication failure #%d", record.count)
        return record

    def reset(self) -> None:
        with self.store.locked():
            self.store.delete_failures()


class OperationRateLimiter:
    """Fixed-window cap on bypass-covered operations."""

    def __init__(self, store, limit: int = DEFAULT_OPERATION_RATE_LIMIT,
                 window: int = OPERATION_RATE_WINDOW,
                 clock: Callable[[], float] = time.time):
        self.store = store
        self.limit = limit
        self.window = window
        self._clock = clock

    def _now(self) -> int:
        return int(self._clock())

    def check_and_count(self) -> bool:
        """Count one operation. False when the window's cap is exceeded."""
        now = self._now()
        with self.store.locked():
            current = self.store.read_rate_window()
            if current is None or now - current.window_start >= self.window or now < current.window_start:
                current = RateWindow(window_start=now, count=0)
            current.count += 1
            self.store.write_rate_window(current)
        if current.count > self.limit:
            logger.warning("Operation rate limit exceeded: %d/%d in %ds",
                           current.count, self.limit, self.window)
            return False
        return True

    def stats(self) -> Tuple[int, int, int]:
        """(count, limit, seconds until the window rolls over)."""
        now = self._now()
        current = self.store.read_rate_window()
        if current is None or now - current.window_start >= self.window or now < current.window_start:
            return 0, self.limit, 0
        return current.count, self.limit, self.window - (now - current.window_start)

    def reset(self) -> None:
        with self.store.locked():
            self.store.delete_rate_window()


__all__ = ['lockout_for', 'FailureBackoff', 'OperationRateLimiter']
