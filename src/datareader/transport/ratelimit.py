"""Token-bucket request throttle, one per RetryableClient."""

from __future__ import annotations

from aiolimiter import AsyncLimiter


class RateLimiter:
    """Caps outbound requests at ``rate`` per second with bursts of ``burst``.

    Over any window of T seconds at most ``burst + rate * T`` waits are
    granted. A rate <= 0 never blocks. Safe to share between concurrent
    tasks on one event loop; grant order is not guaranteed to be FIFO.
    """

    def __init__(self, rate: float, burst: int = 1) -> None:
        if burst < 1:
            raise ValueError(f"burst must be >= 1, got {burst}")
        self.rate = rate
        self.burst = burst
        self._limiter: AsyncLimiter | None = None
        if rate > 0:
            self._limiter = AsyncLimiter(max_rate=burst, time_period=burst / rate)

    @property
    def unlimited(self) -> bool:
        return self._limiter is None

    async def wait(self) -> None:
        """Block until a token is available.

        Cancelling the awaiting task raises ``asyncio.CancelledError`` and
        consumes no token.
        """
        if self._limiter is None:
            return
        await self._limiter.acquire()

    def __repr__(self) -> str:
        return f"RateLimiter(rate={self.rate}, burst={self.burst})"
