"""
lib/scheduler.py

Asyncio-based task scheduler.

Uses a single loop over a priority queue of (next-run, task) pairs rather
than one timer per task. The loop sleeps until the earliest task is due
(or ``check_interval`` at most, so wall-clock jumps are noticed), runs
every due task, and reinserts each one at the instant it returns.
"""

import asyncio
import heapq
import inspect
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple


class TaskScheduler:
    """
    Runs recurring tasks at wall-clock instants.

    A task is any object with a ``fire(now)`` method (sync or async).
    ``fire`` returns the task's next run instant, or None to stop
    recurring. A task that raises is logged and dropped.

    Args:
        clock: Returns the current naive local datetime (injectable)
        check_interval: Maximum seconds to sleep between checks
        logger: Optional logger instance

    Example:
        scheduler = TaskScheduler()
        scheduler.schedule(alert, alert.when)
        await scheduler.start()
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        check_interval: float = 60.0,
        logger: Optional[logging.Logger] = None,
    ):
        self.clock = clock
        self.check_interval = check_interval
        self.running = False
        self.logger = logger or logging.getLogger(__name__)
        self._heap: List[Tuple[datetime, int, Any]] = []
        self._scheduled: Dict[Any, int] = {}  # task -> live sequence number
        self._seq = 0
        self._wakeup = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start the scheduler loop."""
        if self.running:
            self.logger.warning("Scheduler already running")
            return

        self.running = True
        self._task = asyncio.create_task(self._loop())
        self.logger.info(f"Scheduler started (tracking: {self.pending_count} tasks)")

    async def stop(self) -> None:
        """
        Stop the scheduler loop.

        Scheduled tasks stay in the queue.
        """
        if not self.running:
            return

        self.running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self.logger.info("Scheduler stopped")

    def schedule(self, task: Any, when: datetime) -> None:
        """
        Add a task, replacing any earlier schedule for the same task.

        Args:
            task: Object with a fire(now) method
            when: When the task should run
        """
        self._seq += 1
        self._scheduled[task] = self._seq
        heapq.heappush(self._heap, (when, self._seq, task))
        self._wakeup.set()
        self.logger.debug(f"Scheduled {task!r} at {when}")

    def cancel(self, task: Any) -> bool:
        """
        Remove a task.

        Returns:
            True if the task was scheduled, False otherwise
        """
        if self._scheduled.pop(task, None) is None:
            return False
        self.logger.debug(f"Cancelled {task!r}")
        return True

    def is_scheduled(self, task: Any) -> bool:
        return task in self._scheduled

    @property
    def pending_count(self) -> int:
        return len(self._scheduled)

    def next_due(self) -> Optional[datetime]:
        """Instant of the earliest live task, if any."""
        self._discard_stale()
        return self._heap[0][0] if self._heap else None

    async def run_pending(self) -> int:
        """
        Run every task due at the current clock, earliest first.

        Returns:
            Number of tasks fired
        """
        fired = 0
        now = self.clock()

        while True:
            self._discard_stale()
            if not self._heap or self._heap[0][0] > now:
                break

            when, seq, task = heapq.heappop(self._heap)
            del self._scheduled[task]
            fired += 1

            try:
                result = task.fire(now)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                self.logger.exception(f"Error running {task!r}: {e}")
                continue

            if result is None:
                continue
            if result <= when:
                self.logger.error(f"{task!r} did not advance past {when}, dropping it")
                continue
            if task not in self._scheduled:
                self.schedule(task, result)

        return fired

    def _discard_stale(self) -> None:
        while self._heap:
            _, seq, task = self._heap[0]
            if self._scheduled.get(task) == seq:
                return
            heapq.heappop(self._heap)

    def _seconds_until_next(self) -> float:
        when = self.next_due()
        if when is None:
            return self.check_interval
        delay = (when - self.clock()).total_seconds()
        return min(max(delay, 0.0), self.check_interval)

    async def _loop(self) -> None:
        self.logger.debug("Scheduler loop started")

        while self.running:
            try:
                await self.run_pending()

                self._wakeup.clear()
                delay = self._seconds_until_next()
                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=delay)
                except asyncio.TimeoutError:
                    pass

            except asyncio.CancelledError:
                self.logger.debug("Scheduler loop cancelled")
                raise
            except Exception as e:
                self.logger.exception(f"Error in scheduler loop: {e}")
                await asyncio.sleep(self.check_interval)
