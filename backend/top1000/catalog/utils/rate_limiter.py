"""Admission gate for the MobyGames API (1 request per second, 360 per hour)."""

import asyncio
import time
from typing import Awaitable, Callable, Optional

import structlog

logger = structlog.get_logger(__name__)

HOUR = 3600.0


class AdmissionGate:
    """Single-slot FIFO gate with a minimum interval and an hourly cap.

    Only one request is inside the gate at a time; waiters are admitted in
    arrival order (``asyncio.Lock`` is fair). An admission waits until at
    least ``min_interval`` seconds passed since the previous admission and,
    once ``hourly_cap`` admissions happened in the current hour window,
    until that window ends.

    Usage:
        async with gate:
            response = await client.get(url)
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        hourly_cap: int = 360,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the gate.

        Args:
            min_interval: Seconds between two admissions
            hourly_cap: Admissions allowed per hour window
            clock: Monotonic time source in seconds
            sleep: Coroutine used to wait
        """
        self.min_interval = min_interval
        self.hourly_cap = hourly_cap
        self.clock = clock
        self.sleep = sleep
        self._lock = asyncio.Lock()
        self._last: Optional[float] = None
        self._window_start: Optional[float] = None
        self._window_count = 0

    def _delay(self, now: float) -> float:
        if self._window_start is None or now - self._window_start >= HOUR:
            self._window_start = now
            self._window_count = 0

        if self._window_count >= self.hourly_cap:
            return self._window_start + HOUR - now
        if self._last is not None:
            return self._last + self.min_interval - now
        return 0.0

    async def acquire(self) -> None:
        """Wait for the slot and for the rate constraints, then admit."""
        await self._lock.acquire()
        try:
            while True:
                delay = self._delay(self.clock())
                if delay <= 0:
                    break
                logger.debug("admission_delayed", delay=round(delay, 3))
                await self.sleep(delay)
        except BaseException:
            self._lock.release()
            raise

        self._last = self.clock()
        self._window_count += 1

    def release(self) -> None:
        self._lock.release()

    async def __aenter__(self) -> "AdmissionGate":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()
