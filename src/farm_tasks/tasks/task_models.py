# src/farm_tasks/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class GroupCategory(StrEnum):
    """Canonical group categories that feed configurations are keyed by."""

    PRODUCTION = "production"
    MALES = "males"
    BREEDERS = "breeders"


class PermissionState(StrEnum):
    GRANTED = "granted"
    DENIED = "denied"
    DEFAULT = "default"

    @classmethod
    def parse(cls, raw: str | None) -> PermissionState:
        if not raw:
            return cls.DEFAULT
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.DEFAULT


@dataclass(slots=True)
class Todo:
    id: int
    task: str
    due_date: str  # local ISO yyyy-MM-dd
    is_completed: bool
    is_automatic: bool


@dataclass(slots=True)
class PendingTask:
    id: int
    title: str
    action_url: str
    timestamp: int  # epoch milliseconds


# ---- read-only inputs (backend rows) ----


@dataclass(slots=True, frozen=True)
class FeedConfiguration:
    group_type: str
    active: bool
    schedule_times: tuple[str, ...]
    id: str | None = None
    feed_type_id: str | None = None
    quantity_per_cage: float | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> FeedConfiguration:
        times = row.get("schedule_times") or []
        if isinstance(times, str):
            times = [times]
        return cls(
            group_type=str(row.get("group_type") or ""),
            active=bool(row.get("active", True)),
            schedule_times=tuple(str(t) for t in times if t is not None),
            id=row.get("id"),
            feed_type_id=row.get("feed_type_id"),
            quantity_per_cage=row.get("quantity_per_cage"),
        )


@dataclass(slots=True, frozen=True)
class TaskTemplate:
    title: str
    default_time: str
    task_type: str = "custom"
    category_id: str | None = None
    active: bool = True

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> TaskTemplate:
        return cls(
            title=str(row.get("title") or ""),
            default_time=str(row.get("default_time") or ""),
            task_type=str(row.get("task_type") or "custom"),
            category_id=row.get("category_id") or None,
            active=bool(row.get("active", True)),
        )


@dataclass(slots=True, frozen=True)
class Batch:
    id: str
    name: str
    group_id: str | None
    category_id: str | None = None
    status: str = "active"


@dataclass(slots=True, frozen=True)
class Group:
    id: str
    name: str
    type: str


# ---- derived ----


@dataclass(slots=True, frozen=True)
class ScheduleKey:
    batch_id: str
    task_type: str
    time: str
    # Two templates can share batch, type and time; the title tells them apart.
    title: str


@dataclass(slots=True, frozen=True)
class ScheduleEntry:
    """One resolved "this batch, at this time, do this task" instance."""

    batch_id: str
    task_type: str
    time: str  # HH:mm
    title: str
    action_url: str

    @property
    def key(self) -> ScheduleKey:
        return ScheduleKey(self.batch_id, self.task_type, self.time, self.title)

    @property
    def hour_minute(self) -> tuple[int, int]:
        hh, mm = self.time.split(":", 1)
        return int(hh), int(mm)
