"""
Keep-alive scheduler.

Pings an external health URL every six hours so the hosting platform does
not idle the process. API traffic suspends the scheduler for the duration
of each notification window.
"""

import asyncio
import datetime
from contextlib import asynccontextmanager
from typing import AsyncIterator, List

import aiohttp
from discord.ext import tasks

from notapi.config import KeepAliveConfig
from notapi.utils.logging import get_service_logger

# 00:00, 06:00, 12:00 and 18:00 UTC.
FIRE_TIMES: List[datetime.time] = [
    datetime.time(hour=hour, tzinfo=datetime.timezone.utc) for hour in (0, 6, 12, 18)
]
CADENCE = datetime.timedelta(hours=6)


class KeepAliveScheduler:
    """
    Periodic keep-alive ping with pause/resume coordination.

    The scheduler starts paused. While paused, firings are skipped rather
    than queued. API invocations hold it suspended through ``suspended()``,
    which counts overlapping windows: the first window pauses, the last one
    to close resumes, and only if the scheduler was active before the first
    window opened.

    Attributes:
        config: Keep-alive settings (URL, ping timeout)
        active: Whether firings currently ping
        cadence: Interval between firings
        pings: Number of pings attempted since start
    """

    def __init__(self, config: KeepAliveConfig) -> None:
        self.config = config
        self.active = False
        self.cadence = CADENCE
        self.pings = 0
        self._holds = 0
        self._resume_after = False
        self._loop = tasks.loop(time=FIRE_TIMES)(self.tick)
        self.logger = get_service_logger("keepalive")

    @property
    def in_flight(self) -> int:
        return self._holds

    def start(self) -> None:
        """Arm the periodic loop. Must be called from a running event loop."""
        if not self._loop.is_running():
            self._loop.start()
            self.logger.info("Keep-alive loop armed", cadence=str(self.cadence))

    def stop(self) -> None:
        self._loop.cancel()

    def pause(self) -> None:
        self.active = False

    def resume(self) -> None:
        self.active = True

    @asynccontextmanager
    async def suspended(self) -> AsyncIterator[None]:
        """Hold the scheduler paused for the duration of the block."""
        self._holds += 1
        if self._holds == 1:
            self._resume_after = self.active
            self.pause()
        try:
            yield
        finally:
            self._holds -= 1
            if self._holds == 0 and self._resume_after:
                self._resume_after = False
                self.resume()

    async def tick(self) -> None:
        """One scheduled firing: ping unless paused."""
        if not self.active:
            self.logger.debug("Keep-alive firing skipped while paused")
            return
        await self.ping()

    async def ping(self) -> bool:
        """
        Perform one outbound ping of the health URL.

        Failures are logged and swallowed so the loop keeps its cadence.

        Returns:
            True if the URL answered, False otherwise
        """
        if not self.config.url:
            self.logger.debug("No keep-alive URL configured")
            return False

        self.pings += 1
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self.config.url) as response:
                    self.logger.info("Keep-alive ping answered", status=response.status)
                    return True
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.warning("Keep-alive ping failed",
                                error_type=type(e).__name__, error=str(e))
            return False
