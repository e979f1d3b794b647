"""Minimum-interval rate limiting for politeness-limited APIs."""

import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Spaces calls at least ``min_interval`` seconds apart.

    ``acquire`` blocks the calling thread until its slot is due. Slots are
    reserved under the lock, so concurrent callers queue up one interval
    apart instead of firing together.
    """

    def __init__(
        self,
        min_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._next_slot = 0.0

    def acquire(self) -> None:
        with self._lock:
            now = self._clock()
            slot = max(now, self._next_slot)
            self._next_slot = slot + self.min_interval
        wait = slot - now
        if wait > 0:
            logger.debug("Rate limiter sleeping %.3fs", wait)
            self._sleep(wait)
