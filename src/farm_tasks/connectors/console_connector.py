# src/farm_tasks/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks.task_api import follow_up_route, generic_task_name, parse_action_url

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def navigate(action_url: str) -> None:
    """Console stand-in for following a notification link."""
    action = parse_action_url(action_url)
    if action is None:
        _print_ts(f"-> {action_url}")
        return
    _print_ts(
        f"-> {generic_task_name(action.task_type)} for batch {action.batch_id}"
        f" at {action.time or '--:--'}"
    )
    _print_ts(f"   confirm with: /exec {action_url}  (next: {follow_up_route(action.task_type)})")


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            line = (await asyncio.to_thread(input, ">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not line:
            continue

        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = await command_registry.handle(state, line)
        except Exception:
            logger.exception("Command failed: %s", line)
            reply = "Command failed (see log)."

        if reply is None:
            reply = "Not a command. Use /help to list available commands."
        print(reply, flush=True)
