# src/farm_tasks/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from ..core.service import sync_once
from ..core.state import AppState
from ..notifications.console_platform import ConsoleNotificationPlatform
from ..tasks.reconciler import ACTION_ROUTE
from ..tasks.task_api import (
    add_manual_todo,
    checklist,
    dismiss_pending_task,
    execute_pending_task,
    execute_task,
    remove_manual_todo,
)

CommandHandler = Callable[[AppState, list[str]], str | Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /todos, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        result = handler(state, args)
        if inspect.isawaitable(result):
            result = await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _parse_id(args: list[str]) -> int | None:
    if not args:
        return None
    try:
        return int(args[0])
    except ValueError:
        return None


def _today() -> str:
    return datetime.now().date().isoformat()


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_todos(state: AppState, args: list[str]) -> str:
    day = args[0] if args else _today()
    view = checklist(state.task_store, day)
    lines = [f"{view.header} - {day}"]
    if not view.pending:
        lines.append("  Parabéns! Nenhuma tarefa pendente.")
    for todo in view.pending:
        auto = " [Automático]" if todo.is_automatic else ""
        lines.append(f"  [ ] #{todo.id} {todo.task}{auto}")
    if view.completed:
        lines.append("Concluídas:")
        for todo in view.completed:
            lines.append(f"  [x] #{todo.id} {todo.task}")
    return "\n".join(lines)


def cmd_pending(state: AppState, args: list[str]) -> str:
    tasks = state.task_store.list_pending_tasks()
    if not tasks:
        return "No pending tasks."
    lines = [f"Pending tasks ({len(tasks)}):"]
    for task in tasks:
        when = datetime.fromtimestamp(task.timestamp / 1000).strftime("%Y-%m-%d %H:%M")
        lines.append(f"  #{task.id} {task.title} ({when}) -> {task.action_url}")
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str]) -> str:
    text = " ".join(args).strip()
    if not text:
        return "Usage: /add <task text>"
    todo = add_manual_todo(state.task_store, text)
    return f"Added #{todo.id}: {todo.task}"


def cmd_done(state: AppState, args: list[str]) -> str:
    todo_id = _parse_id(args)
    if todo_id is None:
        return "Usage: /done <todo_id>"
    todo = state.task_store.get_todo(todo_id)
    if todo is None:
        return f"Todo #{todo_id} not found."
    state.task_store.toggle_todo(todo_id)
    return f"#{todo_id} {'reopened' if todo.is_completed else 'completed'}: {todo.task}"


def cmd_rm(state: AppState, args: list[str]) -> str:
    todo_id = _parse_id(args)
    if todo_id is None:
        return "Usage: /rm <todo_id>"
    if remove_manual_todo(state.task_store, todo_id):
        return f"Removed #{todo_id}."
    return f"Cannot remove #{todo_id} (not found or automatic)."


def cmd_dismiss(state: AppState, args: list[str]) -> str:
    pending_id = _parse_id(args)
    if pending_id is None:
        return "Usage: /dismiss <pending_id>"
    if dismiss_pending_task(state.task_store, pending_id):
        state.watcher.reset_baseline()
        return f"Dismissed #{pending_id}."
    return f"Pending task #{pending_id} not found."


def cmd_exec(state: AppState, args: list[str]) -> str:
    if args and args[0].startswith(ACTION_ROUTE):
        title = execute_task(state.task_store, args[0], state.reconciler.now())
        if title is None:
            return "No pending task for this link today."
        state.watcher.reset_baseline()
        return f"Done: {title}"

    pending_id = _parse_id(args)
    if pending_id is None:
        return "Usage: /exec <pending_id | action_url>"
    title = execute_pending_task(state.task_store, pending_id)
    if title is None:
        return f"Pending task #{pending_id} not found."
    state.watcher.reset_baseline()
    return f"Done: {title}"


def cmd_open(state: AppState, args: list[str]) -> str:
    platform = state.platform
    if isinstance(platform, ConsoleNotificationPlatform) and platform.click_last():
        return "Opened last notification."
    return "No notification to open."


async def cmd_sync(state: AppState, args: list[str]) -> str:
    result = await sync_once(state, refresh_config=True, force=True)
    if result is None:
        return "Nothing to sync."
    return (
        f"Synced: entries={len(result.entries)} "
        f"new_todos={len(result.todos_created)} new_alerts={len(result.pending_created)}"
    )


async def cmd_permission(state: AppState, args: list[str]) -> str:
    result = await state.dispatcher.request_permission()
    return f"Notification permission: {result.value}"


def cmd_clear(state: AppState, args: list[str]) -> str:
    if args[:1] != ["yes"]:
        return "This deletes every todo and pending task. Confirm with: /clear yes"
    state.task_store.clear_all_tasks()
    state.watcher.reset_baseline()
    logger.info("Tasks cleared from console")
    return "All tasks cleared."


registry.register("help", cmd_help, "Show this help", aliases=["h", "?"])
registry.register("todos", cmd_todos, "Show the checklist (default: today)", aliases=["list"])
registry.register("pending", cmd_pending, "Show pending alerts")
registry.register("add", cmd_add, "Add a manual todo for today")
registry.register("done", cmd_done, "Toggle a todo as completed")
registry.register("rm", cmd_rm, "Remove a manual todo")
registry.register("dismiss", cmd_dismiss, "Dismiss a pending alert")
registry.register("exec", cmd_exec, "Execute a pending alert by id or link (completes its todo)")
registry.register("open", cmd_open, "Open the last notification link")
registry.register("sync", cmd_sync, "Re-fetch configuration and reconcile now")
registry.register("permission", cmd_permission, "Request notification permission")
registry.register("clear", cmd_clear, "Delete all todos and pending alerts")
