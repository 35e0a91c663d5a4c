"""
Request throttling for the shared price source.

Enforces a minimum spacing between outbound calls using one global clock.
"""

import asyncio
import logging
import time

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Minimum-interval limiter shared by every caller of the price source.

    Concurrent callers queue on a lock, so at most one caller proceeds per
    interval and nobody is dropped.

    Parameters
    ----------
    min_interval : float
        Minimum seconds between two consecutive ``wait`` returns

    """

    def __init__(self, min_interval: float = 1.0) -> None:
        self.min_interval = min_interval
        self._last_call: float | None = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        """Suspend until ``min_interval`` has elapsed since the last call was let through."""
        async with self._lock:
            if self._last_call is not None:
                remaining = self.min_interval - (time.monotonic() - self._last_call)
                if remaining > 0:
                    logger.debug("Rate limit wait %.3fs", remaining)
                    await asyncio.sleep(remaining)
            self._last_call = time.monotonic()
