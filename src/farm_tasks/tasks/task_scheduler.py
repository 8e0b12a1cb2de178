# src/farm_tasks/tasks/task_scheduler.py

from __future__ import annotations

"""
Daily timers for schedule entries.

Each registered entry owns one asyncio task that:
- sleeps until the next hh:mm occurrence (today if still ahead, else tomorrow),
- emits a FireEvent with the entry identity onto a queue,
- loops for the following day.

Timers are keyed by (batch_id, task_type, time, title). Registering a key again
cancels the previous handle first, so repeated reconciliation passes never
stack duplicate timers. What a fire does is decided by the consumer
(run_fire_loop), not by the timer.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from .task_models import PendingTask, ScheduleEntry, ScheduleKey

logger = logging.getLogger(__name__)


def next_occurrence(hour: int, minute: int, now: datetime) -> datetime:
    """Next hh:mm strictly after now (today or tomorrow)."""
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


@dataclass(slots=True, frozen=True)
class FireEvent:
    entry: ScheduleEntry
    fired_at: datetime


class DailyTimerRegistry:
    """
    Keyed registry of self-renewing daily timers.

    Must be used from inside a running event loop.
    """

    def __init__(
        self,
        queue: asyncio.Queue[FireEvent],
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._queue = queue
        self._clock = clock
        self._timers: dict[ScheduleKey, asyncio.Task[None]] = {}

    def __len__(self) -> int:
        return len(self._timers)

    def __contains__(self, key: object) -> bool:
        return key in self._timers

    def keys(self) -> list[ScheduleKey]:
        return list(self._timers)

    def schedule(self, entry: ScheduleEntry) -> None:
        key = entry.key
        self.cancel(key)
        self._timers[key] = asyncio.create_task(
            self._run(entry), name=f"timer:{key.batch_id}:{key.task_type}:{key.time}:{key.title}"
        )

    def cancel(self, key: ScheduleKey) -> bool:
        task = self._timers.pop(key, None)
        if task is None:
            return False
        task.cancel()
        return True

    def prune(self, keep: Iterable[ScheduleKey]) -> None:
        """Cancel timers whose entries are gone (batch inactive, time edited, ...)."""
        keep_set = set(keep)
        for key in [k for k in self._timers if k not in keep_set]:
            self.cancel(key)
            logger.info("Timer dropped for stale entry %s", key)

    def cancel_all(self) -> None:
        for key in list(self._timers):
            self.cancel(key)

    async def _run(self, entry: ScheduleEntry) -> None:
        hour, minute = entry.hour_minute
        last_target: datetime | None = None
        while True:
            now = self._clock()
            # An early wake-up must not fire the same occurrence twice.
            if last_target is not None and now < last_target:
                now = last_target
            target = next_occurrence(hour, minute, now)
            delay = max(0.0, (target - self._clock()).total_seconds())
            logger.debug("Timer %s sleeping %.0fs", entry.key, delay)
            await asyncio.sleep(delay)
            await self._queue.put(FireEvent(entry=entry, fired_at=target))
            last_target = target


FireHandler = Callable[[ScheduleEntry], PendingTask | None]
AfterFire = Callable[[], Awaitable[None]]


async def run_fire_loop(
        queue: asyncio.Queue[FireEvent],
        on_fire: FireHandler,
        *,
        after_fire: AfterFire | None = None,
) -> None:
    """
    Consume fire events one at a time.

    on_fire applies the trigger decision for the entry; after_fire runs once
    per event (e.g. to let the alert watcher notice a new pending task).
    Failures are logged and never stop the loop. Cancel the task to stop it.
    """
    while True:
        event = await queue.get()
        try:
            pending = on_fire(event.entry)
            if pending is not None:
                logger.info("Timer fired: %s -> pending id=%s", event.entry.key, pending.id)
            if after_fire is not None:
                await after_fire()
        except Exception:
            logger.exception("fire handler failed entry=%s", event.entry.key)
        finally:
            queue.task_done()
