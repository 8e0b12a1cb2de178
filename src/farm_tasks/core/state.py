# src/farm_tasks/core/state.py

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from ..notifications.dispatcher import NotificationDispatcher
from ..notifications.watcher import PendingAlertWatcher
from ..tasks.reconciler import Reconciler
from ..tasks.task_scheduler import DailyTimerRegistry, FireEvent
from .ports import ConfigSource, DomainSnapshot, NotificationPlatform, TaskRepo


@dataclass(slots=True, frozen=True)
class Inputs:
    """One fetched view of everything a reconciliation pass reads."""

    batches: tuple[Any, ...] = ()
    groups: tuple[Any, ...] = ()
    feed_configurations: tuple[Any, ...] = ()
    task_templates: tuple[Any, ...] = ()


@dataclass
class AppState:
    """
    Explicit container for one running instance.

    Everything that used to be ambient (store, sources, notifier) is owned here
    and passed by reference, so tests can build isolated instances.
    """

    settings: Any

    task_store: TaskRepo
    config_source: ConfigSource
    snapshot: DomainSnapshot
    platform: NotificationPlatform
    dispatcher: NotificationDispatcher
    watcher: PendingAlertWatcher
    reconciler: Reconciler

    timers: DailyTimerRegistry | None = None
    fire_queue: asyncio.Queue[FireEvent] | None = None

    inputs: Inputs = field(default_factory=Inputs)
    last_fingerprint: tuple[Any, ...] | None = None
