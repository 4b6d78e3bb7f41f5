"""Minimum spacing between requests to rate-limited providers."""

import asyncio
import time
from collections.abc import Awaitable, Callable


class RequestThrottle:
    """
    Enforces a global minimum interval between outgoing requests.

    Shared by every request a client makes, regardless of endpoint or
    parameters. Concurrent callers queue on an ``asyncio.Lock`` so spacing
    holds even under ``asyncio.gather``.

    Parameters
    ----------
    min_interval : float
        Minimum seconds between two requests
    clock : Callable[[], float] | None
        Monotonic time source. Uses ``time.monotonic`` if None.
    sleep : Callable[[float], Awaitable[None]] | None
        Async sleep function. Uses ``asyncio.sleep`` if None.

    """

    def __init__(
        self,
        min_interval: float = 1.0,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self.min_interval = min_interval
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._last_request: float | None = None
        self._lock: asyncio.Lock | None = None

    def get_delay(self, now: float) -> float:
        """
        Calculate how long the next request has to wait.

        Parameters
        ----------
        now : float
            Current time on the throttle's clock

        Returns
        -------
        float
            Delay in seconds, 0 if a request may go out immediately

        """
        if self._last_request is None:
            return 0.0
        return max(0.0, self.min_interval - (now - self._last_request))

    async def wait(self) -> None:
        """Block until a request may be sent, then record it as sent."""
        # Created lazily so the throttle can be built outside a running loop.
        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            delay = self.get_delay(self._clock())
            if delay > 0:
                await self._sleep(delay)
            self._last_request = self._clock()
