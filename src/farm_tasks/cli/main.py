# src/farm_tasks/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs on one asyncio loop:
- initial fetch + reconciliation pass,
- per-entry daily timers and the fire loop,
- periodic snapshot refresh,
- console REPL (optional).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import navigate, run_console_loop
from ..core.service import attach_timers, run_refresh_loop, start_fire_loop, sync_once
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def run_service(state: AppState) -> None:
    settings = state.settings

    await state.dispatcher.request_permission()

    timers = attach_timers(state)
    try:
        await sync_once(state, refresh_config=True, force=True)
    except Exception:
        logger.exception("Initial reconciliation failed")

    background = [
        start_fire_loop(state),
        asyncio.create_task(
            run_refresh_loop(state, interval_seconds=float(getattr(settings, "refresh_seconds", 60.0))),
            name="refresh-loop",
        ),
    ]

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Some platforms do not support loop signal handlers.
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop.set)

    try:
        if getattr(settings, "console_enabled", True):
            console = asyncio.create_task(run_console_loop(state), name="console")
            waiter = asyncio.create_task(stop.wait())
            await asyncio.wait({console, waiter}, return_when=asyncio.FIRST_COMPLETED)
            waiter.cancel()
        else:
            logger.info("Console disabled. Running scheduler only. Press Ctrl+C to stop.")
            await stop.wait()
    finally:
        timers.cancel_all()
        for task in background:
            task.cancel()
        await asyncio.gather(*background, return_exceptions=True)
        state.task_store.close()


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=getattr(settings, "data_dir", ".local/farm"), console_level=console_level)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.info("Starting %s...", getattr(settings, "app_name", "farm-tasks"))

    state = create_initial_state(settings=settings, navigate=navigate)

    try:
        asyncio.run(run_service(state))
    except KeyboardInterrupt:
        pass
    logger.info("Bye.")


if __name__ == "__main__":
    main()
