# src/farm_tasks/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the backend source, the task store and the notification platform
swappable and makes testing easier.
"""

from collections.abc import Callable
from datetime import date
from typing import Any, Awaitable, Protocol

from ..tasks.task_models import (
    Batch,
    FeedConfiguration,
    Group,
    PendingTask,
    PermissionState,
    TaskTemplate,
    Todo,
)


class ConfigSource(Protocol):
    """Read-only schedule configuration fetched from the backend."""

    def get_feed_configurations(self) -> Awaitable[list[FeedConfiguration]]: ...
    def get_active_task_templates(self) -> Awaitable[list[TaskTemplate]]: ...


class DomainSnapshot(Protocol):
    """Read-only view of production batches and the groups that own them."""

    def get_active_batches(self) -> Awaitable[list[Batch]]: ...
    def get_groups(self) -> Awaitable[list[Group]]: ...


class TaskRepo(Protocol):
    # Checklist
    def add_todo(self, task: str, due_date: str, is_automatic: bool = False) -> Todo: ...
    def toggle_todo(self, todo_id: int) -> None: ...
    def remove_todo(self, todo_id: int) -> None: ...
    def get_todo(self, todo_id: int) -> Todo | None: ...
    def find_todo(self, task: str, due_date: str) -> Todo | None: ...
    def list_todos(self, due_date: str | None = None) -> list[Todo]: ...
    def count_todos(self) -> int: ...

    # Alert queue
    def add_pending_task(
            self, title: str, action_url: str, now_ts: float | None = None
    ) -> PendingTask: ...
    def remove_pending_task(self, pending_id: int) -> None: ...
    def get_pending_task(self, pending_id: int) -> PendingTask | None: ...
    def find_pending_task(self, title: str, day: date) -> PendingTask | None: ...
    def find_pending_by_action_url(self, action_url: str, day: date) -> PendingTask | None: ...
    def list_pending_tasks(self) -> list[PendingTask]: ...
    def count_pending_tasks(self) -> int: ...

    # Maintenance
    def clear_all_tasks(self) -> None: ...
    def run_maintenance(self, max_entries: int = 500) -> bool: ...
    def close(self) -> None: ...


class BackgroundNotifier(Protocol):
    """
    Notification channel that works while the app is not in the foreground.

    Click routing for these notifications belongs to the service itself;
    `data` carries the action URL as an opaque payload.
    """

    def show_notification(
            self,
            title: str,
            *,
            body: str | None = None,
            data: dict[str, Any] | None = None,
    ) -> Awaitable[None]: ...


class NotificationPlatform(Protocol):
    def permission(self) -> PermissionState: ...
    def request_permission(self) -> Awaitable[PermissionState]: ...
    def background_service(self) -> BackgroundNotifier | None: ...
    def show_foreground(
            self,
            title: str,
            *,
            body: str | None = None,
            on_click: Callable[[], None] | None = None,
    ) -> None: ...
    def play_sound(self) -> Awaitable[None]: ...
