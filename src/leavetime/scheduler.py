"""Periodic refresh and countdown tasks."""

import asyncio
import logging
from typing import Callable, List, Mapping, Optional, Union

from .config import COUNTDOWN_INTERVAL_SECONDS, FETCH_INTERVAL_SECONDS
from .countdown import CountdownUpdater
from .models import LineError, LineView, Published, TrackedLine
from .tracker import LineTracker

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[Mapping[str, Published]], None]
TickCallback = Callable[[Mapping[str, Union[LineView, LineError]]], None]


class LiveBoard:
    """
    Drives a LineTracker on two independent cadences.

    Each line gets its own refresh task, which fetches and publishes that
    line on its own schedule. The countdown task only reads the published set.
    """

    def __init__(
        self,
        tracker: LineTracker,
        refresh_interval: float = FETCH_INTERVAL_SECONDS,
        countdown_interval: float = COUNTDOWN_INTERVAL_SECONDS,
        on_refresh: Optional[RefreshCallback] = None,
        on_tick: Optional[TickCallback] = None,
    ):
        if countdown_interval <= 0:
            raise ValueError("countdown_interval must be positive")
        if refresh_interval < countdown_interval:
            raise ValueError("refresh_interval must be >= countdown_interval")

        self.tracker = tracker
        self.updater = CountdownUpdater(tracker.store)
        self.refresh_interval = refresh_interval
        self.countdown_interval = countdown_interval
        self.on_refresh = on_refresh
        self.on_tick = on_tick
        self._refresh_tasks: List[asyncio.Task] = []
        self._countdown_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._refresh_tasks)

    async def start(self) -> None:
        """Start the per-line refresh tasks and the countdown task."""
        if self.running:
            logger.warning("Live board already running")
            return

        self._refresh_tasks = [
            asyncio.create_task(self._refresh_loop(line)) for line in self.tracker.lines
        ]
        self._countdown_task = asyncio.create_task(self._countdown_loop())
        logger.info(
            f"Started live board for {len(self.tracker.lines)} lines "
            f"(refresh {self.refresh_interval}s, countdown {self.countdown_interval}s)"
        )

    async def stop(self) -> None:
        """Cancel all periodic tasks."""
        for task in [*self._refresh_tasks, self._countdown_task]:
            if task and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._refresh_tasks = []
        self._countdown_task = None
        logger.info("Stopped live board")

    async def refresh_line(self, line: TrackedLine) -> Published:
        """Run one refresh cycle for a line and notify the consumer."""
        value = await asyncio.to_thread(self.tracker.refresh_line, line)
        if self.on_refresh:
            self.on_refresh(self.tracker.store.snapshot())
        return value

    async def refresh(self) -> Mapping[str, Published]:
        """Run one refresh cycle for all lines concurrently."""
        await asyncio.gather(*(self.refresh_line(line) for line in self.tracker.lines))
        return self.tracker.store.snapshot()

    def tick(self) -> Mapping[str, Union[LineView, LineError]]:
        """Run one countdown pass over the published results."""
        views = self.updater.tick()
        if self.on_tick:
            self.on_tick(views)
        return views

    async def _refresh_loop(self, line: TrackedLine) -> None:
        # One loop per line, so a slow feed only delays its own line
        while True:
            try:
                await self.refresh_line(line)
            except Exception as e:
                logger.error(f"Refresh cycle for {line.name} failed: {e}", exc_info=True)
            await asyncio.sleep(self.refresh_interval)

    async def _countdown_loop(self) -> None:
        while True:
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Countdown tick failed: {e}", exc_info=True)
            await asyncio.sleep(self.countdown_interval)
