# src/farm_tasks/sources/static_source.py

from __future__ import annotations

from dataclasses import dataclass, field

from ..tasks.task_models import Batch, FeedConfiguration, Group, TaskTemplate


@dataclass(slots=True)
class StaticSource:
    """In-memory source for offline runs (no backend configured) and tests."""

    feed_configurations: list[FeedConfiguration] = field(default_factory=list)
    task_templates: list[TaskTemplate] = field(default_factory=list)
    batches: list[Batch] = field(default_factory=list)
    groups: list[Group] = field(default_factory=list)

    async def get_feed_configurations(self) -> list[FeedConfiguration]:
        return list(self.feed_configurations)

    async def get_active_task_templates(self) -> list[TaskTemplate]:
        return [t for t in self.task_templates if t.active]

    async def get_active_batches(self) -> list[Batch]:
        return [b for b in self.batches if b.status == "active"]

    async def get_groups(self) -> list[Group]:
        return list(self.groups)
