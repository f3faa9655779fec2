"""Periodic driver for the reward materializer."""
import asyncio
import logging

from staking_dashboard.services.rewards import (MaterializationReport,
                                                RewardMaterializer)

logger = logging.getLogger(__name__)


class RewardScheduler:
    """Runs RewardMaterializer.run_once every interval in an asyncio task.

    The blocking database work runs in a worker thread. A failing tick is
    logged and the next tick still fires; stop() ends the loop promptly.
    """

    def __init__(
        self,
        materializer: RewardMaterializer,
        interval_seconds: float | None = None,
        *,
        run_immediately: bool = True,
    ) -> None:
        self._materializer = materializer
        self._interval = interval_seconds or materializer.interval_seconds
        self._run_immediately = run_immediately
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the loop on the running event loop. No-op if already running."""
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="reward-scheduler")
        logger.info("Reward scheduler started (every %ss)", self._interval)

    async def stop(self) -> None:
        """Signal the loop to stop and wait for the current tick to finish."""
        self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None
        logger.info("Reward scheduler stopped")

    async def tick(self) -> MaterializationReport | None:
        """Run one materializer pass; exceptions are logged, never raised."""
        self.ticks += 1
        try:
            return await asyncio.to_thread(self._materializer.run_once)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Reward tick %d failed", self.ticks)
            return None

    async def _run(self) -> None:
        if not self._run_immediately and await self._wait():
            return
        while not self._stop_event.is_set():
            await self.tick()
            if await self._wait():
                return

    async def _wait(self) -> bool:
        """Sleep one interval; True if stop was requested meanwhile."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
        except asyncio.TimeoutError:
            return False
        return True
