# src/farm_tasks/tasks/reconciler.py

from __future__ import annotations

"""
Daily task reconciliation.

For every active batch:
- resolve its group and normalize the group type,
- join feed configurations and task templates into schedule entries,
- make sure today's checklist has a todo per entry title,
- raise a pending alert for entries whose time already passed (catch-up),
- hand every entry to the timer registry for live daily firing.

The reconciler is synchronous and idempotent: running it again with the same
inputs creates nothing new. Timers only deliver entry identities; what happens
on a fire is decided here, from current store state.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol
from urllib.parse import quote

from ..core.ports import TaskRepo
from .task_models import (
    Batch,
    FeedConfiguration,
    Group,
    GroupCategory,
    PendingTask,
    ScheduleEntry,
    ScheduleKey,
    TaskTemplate,
    Todo,
)

logger = logging.getLogger(__name__)

FEED_TASK_TYPE = "feed"
DEFAULT_TASK_TYPE = "custom"
ACTION_ROUTE = "/tasks/execute"

# Checked in order; the first vocabulary hit wins. "reprod" contains "prod",
# so the more specific categories go before production.
_TYPE_VOCABULARY: tuple[tuple[tuple[str, ...], GroupCategory], ...] = (
    (("macho",), GroupCategory.MALES),
    (("reprod", "matriz"), GroupCategory.BREEDERS),
    (("prod", "postura"), GroupCategory.PRODUCTION),
)


def normalize_group_type(raw: str | None) -> str:
    """
    Map a free-text group type onto a canonical category by substring match.

    "Galpão de Postura 3" -> "production", "Machos Reprodutores" -> "males".
    Unmatched values are returned unchanged.
    """
    value = raw or ""
    lowered = value.lower()
    for needles, category in _TYPE_VOCABULARY:
        if any(n in lowered for n in needles):
            return category.value
    return value


def normalize_time(raw: str | None) -> str | None:
    """
    Return a zero-padded "HH:mm" or None for malformed values.

    Values without a colon ("", "noon") are malformed. Seconds are dropped
    ("08:00:00" -> "08:00").
    """
    if not raw or ":" not in raw:
        return None
    parts = raw.strip().split(":")
    try:
        hour = int(parts[0])
        minute = int(parts[1])
    except ValueError:
        return None
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return f"{hour:02d}:{minute:02d}"


def build_action_url(batch_id: str, task_type: str, time_hhmm: str) -> str:
    return (
        f"{ACTION_ROUTE}?batchId={quote(str(batch_id), safe='')}"
        f"&lockTask={quote(task_type, safe='')}&time={time_hhmm}"
    )


def feed_title(batch: Batch, group: Group) -> str:
    return f"Alimentar {batch.name} ({group.name}) 🌾"


def template_title(template: TaskTemplate, batch: Batch) -> str:
    return f"{template.title} - {batch.name} 📋"


def resolve_entries(
    batch: Batch,
    group: Group,
    feed_configs: Sequence[FeedConfiguration],
    templates: Sequence[TaskTemplate],
) -> list[ScheduleEntry]:
    """
    Join one batch against both schedule sources.

    Feed entries come first, then template entries; each source keeps its own order.
    Entries with malformed times are dropped.
    """
    raw: list[tuple[str, str, str]] = []  # (task_type, time, title)

    group_type = normalize_group_type(group.type).strip().lower()
    feed = next(
        (
            c
            for c in feed_configs
            if c.active and c.group_type.strip().lower() == group_type
        ),
        None,
    )
    if feed is not None:
        title = feed_title(batch, group)
        for t in feed.schedule_times:
            raw.append((FEED_TASK_TYPE, t, title))

    for tmpl in templates:
        if not tmpl.active:
            continue
        if tmpl.category_id and tmpl.category_id != batch.category_id:
            continue
        raw.append((tmpl.task_type or DEFAULT_TASK_TYPE, tmpl.default_time, template_title(tmpl, batch)))

    entries: list[ScheduleEntry] = []
    for task_type, t, title in raw:
        hhmm = normalize_time(t)
        if hhmm is None:
            continue
        entries.append(
            ScheduleEntry(
                batch_id=str(batch.id),
                task_type=task_type,
                time=hhmm,
                title=title,
                action_url=build_action_url(batch.id, task_type, hhmm),
            )
        )
    return entries


class EntryScheduler(Protocol):
    """Live daily timers keyed by schedule entry identity."""

    def schedule(self, entry: ScheduleEntry) -> None: ...
    def prune(self, keep: Iterable[ScheduleKey]) -> None: ...


@dataclass(slots=True)
class ReconcileResult:
    entries: list[ScheduleEntry] = field(default_factory=list)
    todos_created: list[Todo] = field(default_factory=list)
    pending_created: list[PendingTask] = field(default_factory=list)


class Reconciler:
    """Owns the write path from schedules into the task store."""

    def __init__(
        self,
        store: TaskRepo,
        *,
        scheduler: EntryScheduler | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.scheduler = scheduler
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    # ---- per-entry steps ----

    def ensure_todo(self, entry: ScheduleEntry, now: datetime | None = None) -> Todo | None:
        """Create today's automatic todo for the entry title if missing."""
        now = now or self.now()
        today = now.date().isoformat()
        if self.store.find_todo(entry.title, today) is not None:
            return None
        return self.store.add_todo(entry.title, today, True)

    def trigger(self, entry: ScheduleEntry, now: datetime | None = None) -> PendingTask | None:
        """
        Raise today's alert for the entry unless it is done or already raised.

        Returns the created pending task, or None when nothing was needed.
        """
        now = now or self.now()
        todo = self.store.find_todo(entry.title, now.date().isoformat())
        if todo is not None and todo.is_completed:
            return None
        if self.store.find_pending_task(entry.title, now.date()) is not None:
            return None
        pending = self.store.add_pending_task(entry.title, entry.action_url, now_ts=now.timestamp())
        logger.info("Alert raised: %s (%s)", entry.title, entry.time)
        return pending

    def fire(self, entry: ScheduleEntry, now: datetime | None = None) -> PendingTask | None:
        """Timer callback: bring the entry's checklist row up to date, then trigger."""
        now = now or self.now()
        self.ensure_todo(entry, now)
        return self.trigger(entry, now)

    # ---- full pass ----

    def reconcile(
        self,
        batches: Iterable[Batch],
        groups: Iterable[Group],
        feed_configs: Sequence[FeedConfiguration],
        templates: Sequence[TaskTemplate],
        now: datetime | None = None,
    ) -> ReconcileResult:
        now = now or self.now()
        now_hhmm = now.strftime("%H:%M")
        groups_by_id = {str(g.id): g for g in groups}
        result = ReconcileResult()

        for batch in batches:
            if batch.status != "active":
                continue
            group = groups_by_id.get(str(batch.group_id)) if batch.group_id is not None else None
            if group is None:
                continue

            for entry in resolve_entries(batch, group, feed_configs, templates):
                result.entries.append(entry)

                todo = self.ensure_todo(entry, now)
                if todo is not None:
                    result.todos_created.append(todo)

                if entry.time <= now_hhmm:
                    pending = self.trigger(entry, now)
                    if pending is not None:
                        result.pending_created.append(pending)

                if self.scheduler is not None:
                    self.scheduler.schedule(entry)

        if self.scheduler is not None:
            self.scheduler.prune(e.key for e in result.entries)

        logger.debug(
            "Reconcile pass: entries=%d todos_created=%d pending_created=%d",
            len(result.entries),
            len(result.todos_created),
            len(result.pending_created),
        )
        return result
