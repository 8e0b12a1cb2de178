# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from farm_tasks.core.state import AppState
from farm_tasks.notifications.dispatcher import NotificationDispatcher
from farm_tasks.notifications.watcher import PendingAlertWatcher
from farm_tasks.sources.static_source import StaticSource
from farm_tasks.tasks.reconciler import Reconciler
from farm_tasks.tasks.task_models import Batch, FeedConfiguration, Group
from farm_tasks.tasks.task_store import TaskStore

from .fakes import FakeClock, FakeNotificationPlatform, FakeScheduler


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="farm-tasks-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        tasks_max_entries=500,
        supabase_url="",
        supabase_key=None,
        http_timeout_seconds=1.0,
        refresh_seconds=60.0,
        notifications_permission="granted",
        push_url="",
        sound_enabled=False,
    )


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_db_path)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 5, 10, 8, 0))


@pytest.fixture()
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture()
def reconciler(store: TaskStore, clock: FakeClock, scheduler: FakeScheduler) -> Reconciler:
    return Reconciler(store, scheduler=scheduler, clock=clock)


@pytest.fixture()
def source() -> StaticSource:
    """Batch "Lote A" in a commercial laying group with two daily feedings."""
    return StaticSource(
        feed_configurations=[
            FeedConfiguration(group_type="production", active=True, schedule_times=("07:00", "17:00")),
        ],
        batches=[Batch(id="B1", name="Lote A", group_id="G1", category_id="cat-1")],
        groups=[Group(id="G1", name="G1", type="Postura Comercial")],
    )


@pytest.fixture()
def platform() -> FakeNotificationPlatform:
    return FakeNotificationPlatform()


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    store: TaskStore,
    source: StaticSource,
    platform: FakeNotificationPlatform,
    reconciler: Reconciler,
) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: We keep the real SQLite TaskStore here because its correctness is
    part of what we want to test.
    """
    dispatcher = NotificationDispatcher(platform)
    return AppState(
        settings=settings,
        task_store=store,
        config_source=source,
        snapshot=source,
        platform=platform,
        dispatcher=dispatcher,
        watcher=PendingAlertWatcher(store, dispatcher),
        reconciler=reconciler,
    )
