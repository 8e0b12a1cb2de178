# src/farm_tasks/core/service.py

"""
Service orchestration.

This module is transport-agnostic:
- it fetches configuration and the domain snapshot through the source ports,
- runs a reconciliation pass when anything (or the calendar day) changed,
- lets the alert watcher turn new pending tasks into notifications,
- keeps the timer registry and fire loop alive.

Key invariants:
- a failed fetch degrades to an empty list for that input only,
- configuration is re-fetched only at start-up or on an explicit sync,
- a pass never raises out of the refresh loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from ..tasks.reconciler import ReconcileResult
from ..tasks.task_scheduler import DailyTimerRegistry, FireEvent, run_fire_loop
from .state import AppState, Inputs

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _guarded(what: str, call: Awaitable[list[T]]) -> list[T]:
    try:
        return list(await call)
    except Exception:
        logger.exception("Fetching %s failed; continuing with none", what)
        return []


async def fetch_inputs(state: AppState, *, refresh_config: bool) -> Inputs:
    batches = await _guarded("batches", state.snapshot.get_active_batches())
    groups = await _guarded("groups", state.snapshot.get_groups())

    if refresh_config:
        feeds = await _guarded("feed configurations", state.config_source.get_feed_configurations())
        templates = await _guarded("task templates", state.config_source.get_active_task_templates())
    else:
        feeds = list(state.inputs.feed_configurations)
        templates = list(state.inputs.task_templates)

    return Inputs(
        batches=tuple(batches),
        groups=tuple(groups),
        feed_configurations=tuple(feeds),
        task_templates=tuple(templates),
    )


def _fingerprint(state: AppState, inputs: Inputs) -> tuple[Any, ...]:
    day = state.reconciler.now().date()
    return (
        day,
        inputs.batches,
        inputs.groups,
        inputs.feed_configurations,
        inputs.task_templates,
    )


async def sync_once(
    state: AppState,
    *,
    refresh_config: bool = False,
    force: bool = False,
) -> ReconcileResult | None:
    """
    Fetch inputs and reconcile if they changed since the last pass.

    Returns the pass result, or None when nothing changed.
    """
    inputs = await fetch_inputs(state, refresh_config=refresh_config)
    fingerprint = _fingerprint(state, inputs)
    if not force and fingerprint == state.last_fingerprint:
        return None

    state.inputs = inputs
    state.last_fingerprint = fingerprint

    result = state.reconciler.reconcile(
        inputs.batches,
        inputs.groups,
        inputs.feed_configurations,
        inputs.task_templates,
    )
    logger.info(
        "Reconciled: batches=%d entries=%d new_todos=%d new_alerts=%d",
        len(inputs.batches),
        len(result.entries),
        len(result.todos_created),
        len(result.pending_created),
    )
    await state.watcher.check()
    return result


def attach_timers(state: AppState) -> DailyTimerRegistry:
    """Create the fire queue and timer registry (needs a running loop) and wire them in."""
    queue: asyncio.Queue[FireEvent] = asyncio.Queue()
    timers = DailyTimerRegistry(queue)
    state.fire_queue = queue
    state.timers = timers
    state.reconciler.scheduler = timers
    return timers


def start_fire_loop(state: AppState) -> asyncio.Task[None]:
    if state.fire_queue is None:
        raise RuntimeError("attach_timers() must run before start_fire_loop()")
    return asyncio.create_task(
        run_fire_loop(state.fire_queue, state.reconciler.fire, after_fire=state.watcher.check),
        name="fire-loop",
    )


async def run_refresh_loop(state: AppState, *, interval_seconds: float = 60.0) -> None:
    """
    Re-read the domain snapshot periodically and reconcile on change.

    To stop the loop, cancel the coroutine/task.
    """
    sleep_s = max(1.0, float(interval_seconds))
    while True:
        await asyncio.sleep(sleep_s)
        try:
            await sync_once(state)
        except Exception:
            logger.exception("refresh pass failed")
