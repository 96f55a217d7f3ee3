"""Process-wide politeness gate for outbound fetches."""

import asyncio
import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """Enforces a minimum delay between consecutive fetch issuances.

    One instance is shared by every worker. ``throttle()`` holds the lock only
    while waiting and recording the issuance instant, never across the fetch.
    """

    def __init__(self, delay: float, clock: Callable[[], float] = time.monotonic):
        self.delay = delay
        self._clock = clock
        self._lock = asyncio.Lock()
        self._last_fetch: Optional[float] = None

    async def throttle(self) -> float:
        """Wait until a fetch may be issued. Returns the number of seconds waited."""
        waited = 0.0
        async with self._lock:
            if self._last_fetch is not None:
                elapsed = self._clock() - self._last_fetch
                if elapsed < self.delay:
                    waited = self.delay - elapsed
                    logger.debug("Throttling fetch for %.3fs", waited)
                    await asyncio.sleep(waited)
            self._last_fetch = self._clock()
        return waited
