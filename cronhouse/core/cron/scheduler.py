"""
In-process timer: run a tick every `interval` seconds.

Optional; ticks can also come from GET /cron. A bad config file or a
single-flight rejection skips that tick and the loop keeps going.

Each tick passes the previous completed tick's instant to the dispatcher, so a
fire time between two ticks is submitted even when the timer runs late.
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional

from cronhouse.core.cron.errors import ConfigError, TickInProgressError
from cronhouse.core.cron.service import CronService

logger = logging.getLogger(__name__)


class CronScheduler:
    """Background asyncio task that drives CronService.run_tick."""

    def __init__(self, service: CronService, interval: float = 60):
        self.service = service
        self.interval = interval
        self.last_tick: Optional[datetime] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick_once(self) -> None:
        try:
            # Blocking work (file read, HTTP submission) stays off the event loop
            report = await asyncio.to_thread(self.service.run_tick, None, self.last_tick)
        except ConfigError as e:
            logger.error("Error getting config: %s", e)
            return
        except TickInProgressError:
            logger.info("Skipping tick; previous tick still running")
            return
        except Exception as e:
            logger.exception("cron scheduler tick failed: %s", e)
            return
        self.last_tick = report.now

    async def run_loop(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while True:
            await self.tick_once()
            # Sleep to the next deadline rather than a fixed delay, so tick time does not accumulate
            deadline += self.interval
            delay = deadline - loop.time()
            if delay < 0:
                logger.warning("Cron tick overran the %ss interval", self.interval)
                deadline = loop.time()
                delay = 0
            await asyncio.sleep(delay)

    async def start(self) -> None:
        """Start the scheduler as a background task."""
        if self._task is not None:
            return
        self._task = asyncio.create_task(self.run_loop())
        logger.info("Cron scheduler started (tick every %ss)", self.interval)

    async def stop(self) -> None:
        """Cancel the scheduler task."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Cron scheduler stopped")
