# src/farm_tasks/notifications/watcher.py

from __future__ import annotations

import logging

from ..core.ports import TaskRepo
from .dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)

LIST_ROUTE = "/tasks/list"


class PendingAlertWatcher:
    """
    Turns growth of the alert queue into notifications.

    - one pending task  -> notify with that task's title and link
    - several           -> one aggregated "you have N" notification
    A shrinking queue only moves the baseline.
    """

    def __init__(self, store: TaskRepo, dispatcher: NotificationDispatcher) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self._last_count = store.count_pending_tasks()

    @property
    def last_count(self) -> int:
        return self._last_count

    def reset_baseline(self) -> None:
        """Re-read the queue size after removals made outside a pass."""
        try:
            self._last_count = self.store.count_pending_tasks()
        except Exception:
            logger.exception("count_pending_tasks failed")

    async def check(self) -> None:
        try:
            count = self.store.count_pending_tasks()
        except Exception:
            logger.exception("count_pending_tasks failed")
            return

        prev = self._last_count
        self._last_count = count
        if count <= prev:
            return

        if count == 1:
            tasks = self.store.list_pending_tasks()
            if not tasks:
                return
            task = tasks[0]
            await self.dispatcher.send_notification(
                task.title, body="Nova tarefa agendada", action_url=task.action_url
            )
        else:
            await self.dispatcher.send_notification(
                "Tarefas Pendentes 📋",
                body=f"Você tem {count} notificações em fila. Clique para ver.",
                action_url=LIST_ROUTE,
            )
