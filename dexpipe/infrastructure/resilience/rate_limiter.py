"""Implementation of a rate limiter.

Controls the frequency of outgoing requests to PokeAPI. A single instance
is shared by every HTTP client so that all outbound traffic is gated by
one minimum interval between dispatches.
"""

import time
import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_MIN_INTERVAL_SECONDS = 0.1


class RateLimiter:
    """Minimum-interval rate limiter.

    The lock is held across the sleep, so concurrent callers are admitted
    one at a time and N callers take at least (N-1) * interval overall.
    """

    def __init__(self, min_interval: float = DEFAULT_MIN_INTERVAL_SECONDS):
        """Initializes the rate limiter.

        Args:
            min_interval: Minimum number of seconds between two dispatches.
        """
        self.min_interval = max(0.0, min_interval)
        self._last_dispatch: Optional[float] = None
        self._lock = asyncio.Lock()
        logger.info(f"RateLimiter initialized: min interval {self.min_interval:.3f} seconds")

    def _remaining(self, interval: float) -> float:
        if self._last_dispatch is None:
            return 0.0
        elapsed = time.monotonic() - self._last_dispatch
        return max(0.0, interval - elapsed)

    async def wait_for_permission(self, min_interval: Optional[float] = None) -> None:
        """Waits until a request is permitted, then records the dispatch time.

        Args:
            min_interval: Overrides the configured interval for this call.
        """
        interval = self.min_interval if min_interval is None else max(0.0, min_interval)
        async with self._lock:
            wait_time = self._remaining(interval)
            if wait_time > 0:
                logger.debug(f"Rate limit reached. Waiting for {wait_time:.3f} seconds.")
            # Timers may fire a hair early; re-check until the interval has truly elapsed
            while wait_time > 0:
                await asyncio.sleep(wait_time)
                wait_time = self._remaining(interval)
            self._last_dispatch = time.monotonic()

    def get_wait_time(self) -> float:
        """Estimates the time needed before the next request can be made."""
        return self._remaining(self.min_interval)

    def reset(self) -> None:
        """Forgets the last dispatch so the next request goes out immediately."""
        self._last_dispatch = None
