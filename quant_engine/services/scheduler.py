"""Keyed, cancellable periodic tasks.

Each key owns at most one live task. A task sleeps ``interval`` on the
injected clock, checks its cancelled flag, then runs the callback. Once
``cancel(key)`` returns, the callback is never invoked again for that
task even if the sleep already finished.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from quant_engine.interfaces import Clock, SystemClock

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[None]]


@dataclass
class ScheduledTask:
    key: str
    interval: float
    callback: TickCallback
    task: asyncio.Task | None = None
    cancelled: bool = False
    ticks: int = 0
    errors: int = field(default=0)


class TaskScheduler:
    """Runs periodic coroutines keyed by id (position id, job name)."""

    def __init__(self, clock: Clock | None = None):
        self.clock = clock or SystemClock()
        self._tasks: dict[str, ScheduledTask] = {}

    def is_scheduled(self, key: str) -> bool:
        entry = self._tasks.get(key)
        return entry is not None and not entry.cancelled and entry.task is not None and not entry.task.done()

    def keys(self) -> list[str]:
        return [k for k in self._tasks if self.is_scheduled(k)]

    def schedule(self, key: str, interval: float, callback: TickCallback) -> bool:
        """Start a periodic task for ``key``.

        Returns:
            False (and does nothing) if a live task already exists for ``key``.
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        if self.is_scheduled(key):
            logger.warning("Task %s is already scheduled", key)
            return False

        entry = ScheduledTask(key=key, interval=interval, callback=callback)
        entry.task = asyncio.create_task(self._run(entry), name=f"scheduler:{key}")
        self._tasks[key] = entry
        logger.debug("Scheduled %s every %.1fs", key, interval)
        return True

    async def _run(self, entry: ScheduledTask) -> None:
        try:
            while not entry.cancelled:
                await self.clock.sleep(entry.interval)
                if entry.cancelled:
                    break
                try:
                    await entry.callback()
                    entry.ticks += 1
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    entry.errors += 1
                    logger.error("Scheduled task %s failed: %s", entry.key, e)
        except asyncio.CancelledError:
            pass
        finally:
            if self._tasks.get(entry.key) is entry:
                del self._tasks[entry.key]

    def cancel(self, key: str) -> bool:
        """Stop the task for ``key``; safe to call from inside its own callback.

        Returns:
            True if a task was cancelled.
        """
        entry = self._tasks.pop(key, None)
        if entry is None:
            return False
        entry.cancelled = True
        current = asyncio.current_task()
        if entry.task is not None and entry.task is not current and not entry.task.done():
            entry.task.cancel()
        logger.debug("Cancelled %s", key)
        return True

    async def cancel_all(self) -> None:
        """Cancel every task and wait for them to finish."""
        entries = list(self._tasks.values())
        self._tasks.clear()
        current = asyncio.current_task()
        for entry in entries:
            entry.cancelled = True
            if entry.task is not None and entry.task is not current:
                entry.task.cancel()
        tasks = [e.task for e in entries if e.task is not None and e.task is not current]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
