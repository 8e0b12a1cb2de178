# src/farm_tasks/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- runs store maintenance before anything else touches the store,
- wires concrete implementations into AppState (store/sources/notifications).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import BackgroundNotifier, ConfigSource, DomainSnapshot
from ..core.state import AppState
from ..notifications.console_platform import ConsoleNotificationPlatform
from ..notifications.dispatcher import Navigator, NotificationDispatcher
from ..notifications.push import WebhookPushNotifier
from ..notifications.watcher import PendingAlertWatcher
from ..sources.static_source import StaticSource
from ..sources.supabase_source import SupabaseSource
from ..tasks.reconciler import Reconciler
from ..tasks.task_models import PermissionState
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def _build_source(settings) -> ConfigSource | DomainSnapshot:
    url = (getattr(settings, "supabase_url", "") or "").strip()
    if not url:
        logger.warning("FARM_SUPABASE_URL is not set: running with an empty offline source")
        return StaticSource()
    return SupabaseSource(
        url,
        getattr(settings, "supabase_key", None),
        timeout=float(getattr(settings, "http_timeout_seconds", 15.0)),
    )


def _build_push(settings) -> BackgroundNotifier | None:
    url = (getattr(settings, "push_url", "") or "").strip()
    if not url:
        return None
    return WebhookPushNotifier(url, timeout=float(getattr(settings, "http_timeout_seconds", 15.0)))


def create_initial_state(*, settings=None, navigate: Navigator | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = TaskStore(settings.tasks_db_path)
    if store.run_maintenance(int(getattr(settings, "tasks_max_entries", 500))):
        logger.warning("Task store was wiped by the startup size guard")

    source = _build_source(settings)
    platform = ConsoleNotificationPlatform(
        permission=PermissionState.parse(getattr(settings, "notifications_permission", None)),
        background=_build_push(settings),
        sound_enabled=bool(getattr(settings, "sound_enabled", True)),
    )
    dispatcher = NotificationDispatcher(platform, navigate=navigate)

    return AppState(
        settings=settings,
        task_store=store,
        config_source=source,  # type: ignore[arg-type]
        snapshot=source,  # type: ignore[arg-type]
        platform=platform,
        dispatcher=dispatcher,
        watcher=PendingAlertWatcher(store, dispatcher),
        reconciler=Reconciler(store),
    )
