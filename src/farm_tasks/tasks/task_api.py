# src/farm_tasks/tasks/task_api.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from urllib.parse import parse_qs, urlsplit

from ..core.ports import TaskRepo
from .task_models import Todo

logger = logging.getLogger(__name__)

_GENERIC_NAMES = {
    "feed": "Alimentação",
    "water": "Água",
    "egg": "Coleta de ovos",
}

_FOLLOW_UP_ROUTES = {
    "feed": "/feed",
    "egg": "/production/register",
}


@dataclass(slots=True, frozen=True)
class TaskAction:
    """Decoded /tasks/execute deep link."""

    batch_id: str
    task_type: str
    time: str | None = None


@dataclass(slots=True)
class Checklist:
    pending: list[Todo] = field(default_factory=list)
    completed: list[Todo] = field(default_factory=list)

    @property
    def header(self) -> str:
        return f"Lista de Tarefas ({len(self.pending)})"


def parse_action_url(action_url: str) -> TaskAction | None:
    """
    Decode a task deep link.

    Accepts the current (batchId, lockTask) parameters and the legacy
    (groupId, task) ones. Returns None when batch or task type is missing.
    """
    if not action_url:
        return None
    params = parse_qs(urlsplit(action_url).query)

    def first(*names: str) -> str | None:
        for n in names:
            values = params.get(n)
            if values and values[0]:
                return values[0]
        return None

    batch_id = first("batchId", "groupId")
    task_type = first("lockTask", "task")
    if not batch_id or not task_type:
        return None
    return TaskAction(batch_id=batch_id, task_type=task_type, time=first("time"))


def generic_task_name(task_type: str | None) -> str:
    return _GENERIC_NAMES.get(task_type or "", "Cuidado diário")


def follow_up_route(task_type: str | None) -> str:
    """Where the user goes after confirming a task."""
    return _FOLLOW_UP_ROUTES.get(task_type or "", "/")


def execute_task(store: TaskRepo, action_url: str, now: datetime | None = None) -> str | None:
    """
    Confirm a task from its deep link.

    Marks today's todo with the alert's title as completed (if it is not
    already) and removes the alert. Returns the title, or None when no alert
    for this link exists today.
    """
    now = now or datetime.now()
    pending = store.find_pending_by_action_url(action_url, now.date())
    if pending is None:
        logger.info("No pending task for %s today", action_url)
        return None

    todo = store.find_todo(pending.title, now.date().isoformat())
    if todo is not None and not todo.is_completed:
        store.toggle_todo(todo.id)

    store.remove_pending_task(pending.id)
    logger.info("Task executed: %s", pending.title)
    return pending.title


def execute_pending_task(store: TaskRepo, pending_id: int) -> str | None:
    """Same as execute_task, addressed by alert id (the todo of the alert's own day)."""
    pending = store.get_pending_task(pending_id)
    if pending is None:
        return None
    day = datetime.fromtimestamp(pending.timestamp / 1000).date()
    todo = store.find_todo(pending.title, day.isoformat())
    if todo is not None and not todo.is_completed:
        store.toggle_todo(todo.id)
    store.remove_pending_task(pending.id)
    logger.info("Task executed: %s", pending.title)
    return pending.title


def dismiss_pending_task(store: TaskRepo, pending_id: int) -> bool:
    if store.get_pending_task(pending_id) is None:
        return False
    store.remove_pending_task(pending_id)
    return True


def add_manual_todo(store: TaskRepo, task: str, due_date: date | str | None = None) -> Todo:
    if due_date is None:
        due_date = date.today()
    if isinstance(due_date, date):
        due_date = due_date.isoformat()
    return store.add_todo(task.strip(), due_date, False)


def remove_manual_todo(store: TaskRepo, todo_id: int) -> bool:
    """Delete a user-created todo. Automatic todos are refused."""
    todo = store.get_todo(todo_id)
    if todo is None or todo.is_automatic:
        return False
    store.remove_todo(todo_id)
    return True


def checklist(store: TaskRepo, due_date: str | None = None) -> Checklist:
    out = Checklist()
    for todo in store.list_todos(due_date):
        (out.completed if todo.is_completed else out.pending).append(todo)
    return out
