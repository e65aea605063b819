"""
Background work owned by the engine.

BestEffortTasks: fire-and-forget coroutines (session tracking, cache writes).
Callers never await them and never depend on their completion; failures are
logged and dropped. Strong references are held until each task finishes.

TrendingRefreshScheduler: recomputes trending snapshots for each configured
period every interval_seconds until stopped.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Coroutine, Iterable, Optional, Set

logger = logging.getLogger(__name__)


class BestEffortTasks:
    """Runner for non-blocking, best-effort coroutines."""

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine, label: str = "task") -> asyncio.Task:
        """Schedule coro on the running loop and return immediately."""
        task = asyncio.create_task(coro, name=label)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(
                "[tasks] best-effort task %s failed: %s", task.get_name(), exc,
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    async def drain(self) -> None:
        """Wait for every pending task (shutdown and tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class TrendingRefreshScheduler:
    """Periodic trending recomputation as a single asyncio task."""

    def __init__(
        self,
        refresh: Callable[[str], Awaitable[object]],
        periods: Iterable[str],
        interval_seconds: float,
    ):
        self._refresh = refresh
        self.periods = list(periods)
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> None:
        for period in self.periods:
            try:
                await self._refresh(period)
            except Exception as e:
                logger.warning("[trending] refresh failed for period=%s: %s", period, e)

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.running:
            return
        logger.info(
            "[trending] refresh scheduler started periods=%s interval=%ss",
            self.periods, self.interval_seconds,
        )
        self._task = asyncio.create_task(self._loop(), name="trending-refresh")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("[trending] refresh scheduler stopped")
