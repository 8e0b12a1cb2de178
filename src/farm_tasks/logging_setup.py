# src/farm_tasks/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "farm.log"

# Minimum console level per logger prefix. The ">>>" prompt shares the terminal,
# so anything that repeats on a schedule is kept in the file only.
_CONSOLE_MIN_LEVEL: tuple[tuple[str, int], ...] = (
    # One "sleeping Ns" line per timer per day and one "fired" line per entry.
    ("farm_tasks.tasks.task_scheduler", logging.WARNING),
    # Row-level debug lines for every todo and alert insert.
    ("farm_tasks.tasks.task_store", logging.INFO),
    # The refresh loop issues two PostgREST GETs every FARM_REFRESH_SECONDS.
    ("httpx", logging.ERROR),
    ("httpcore", logging.ERROR),
    ("py.warnings", logging.ERROR),
)


class _ConsoleNoiseFilter(logging.Filter):
    """Keep the interactive console readable; the file handler still gets everything."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        for prefix, level in _CONSOLE_MIN_LEVEL:
            if name == prefix or name.startswith(prefix + "."):
                return record.levelno >= level

        if name.startswith("farm_tasks."):
            return True

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/farm",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Route logs to stderr (filtered) and to <log_dir>/farm.log (full detail).

    Call once from main(), before the store is opened: the startup size guard
    logs its wipe warning during bootstrap.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_dir / LOG_FILE_NAME), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
