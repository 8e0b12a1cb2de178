# src/farm_tasks/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Every value has a safe default so the service can run offline.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .tasks.task_models import PermissionState

ENV_PREFIX = "FARM"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Local .env never overrides the real environment.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path

    # ---- Store maintenance ----
    tasks_max_entries: int

    # ---- Backend (Supabase / PostgREST) ----
    supabase_url: str
    supabase_key: Optional[str]
    http_timeout_seconds: float
    refresh_seconds: float

    # ---- Notifications ----
    notifications_permission: str
    push_url: str
    sound_enabled: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "farm-tasks") or "farm-tasks"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/farm"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        tasks_max_entries = max(1, _env_int(_k("TASKS_MAX_ENTRIES"), 500))

        supabase_url = (_first_env(_k("SUPABASE_URL"), "SUPABASE_URL", default="") or "").strip()
        supabase_key = _first_env(_k("SUPABASE_KEY"), "SUPABASE_KEY", default=None)
        http_timeout_seconds = _env_float(_k("HTTP_TIMEOUT_SECONDS"), 15.0)
        refresh_seconds = _env_float(_k("REFRESH_SECONDS"), 60.0)

        permission = PermissionState.parse(_env(_k("NOTIFICATIONS_PERMISSION"), "granted")).value
        push_url = _env(_k("PUSH_URL"), "").strip()
        sound_enabled = _env_bool(_k("SOUND_ENABLED"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            tasks_max_entries=tasks_max_entries,
            supabase_url=supabase_url,
            supabase_key=supabase_key,
            http_timeout_seconds=http_timeout_seconds,
            refresh_seconds=refresh_seconds,
            notifications_permission=permission,
            push_url=push_url,
            sound_enabled=sound_enabled,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
