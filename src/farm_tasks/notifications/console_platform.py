# src/farm_tasks/notifications/console_platform.py

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from datetime import datetime
from typing import TextIO

from ..core.ports import BackgroundNotifier
from ..tasks.task_models import PermissionState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ConsoleNotificationPlatform:
    """
    Terminal-backed notification platform.

    - foreground notifications are printed to the console
    - the last notification can be "clicked" with /open
    - the audio cue is the terminal bell (only on a TTY)
    - an optional background notifier (push webhook) takes precedence
    """

    def __init__(
        self,
        *,
        permission: PermissionState = PermissionState.DEFAULT,
        background: BackgroundNotifier | None = None,
        sound_enabled: bool = True,
        out: TextIO | None = None,
    ) -> None:
        self._permission = permission
        self._background = background
        self._sound_enabled = sound_enabled
        self._out = out or sys.stdout
        self._last_click: Callable[[], None] | None = None

    def permission(self) -> PermissionState:
        return self._permission

    async def request_permission(self) -> PermissionState:
        if self._permission == PermissionState.DEFAULT:
            # An interactive terminal is the closest thing to a user granting access.
            self._permission = (
                PermissionState.GRANTED if self._is_tty() else PermissionState.DENIED
            )
        return self._permission

    def background_service(self) -> BackgroundNotifier | None:
        return self._background

    def show_foreground(
        self,
        title: str,
        *,
        body: str | None = None,
        on_click: Callable[[], None] | None = None,
    ) -> None:
        line = f"[{_ts_local()}] 🔔 {title}"
        if body:
            line += f" | {body}"
        print(line, file=self._out, flush=True)
        self._last_click = on_click

    def click_last(self) -> bool:
        """Simulate a click on the most recent foreground notification."""
        on_click = self._last_click
        if on_click is None:
            return False
        self._last_click = None
        on_click()
        return True

    async def play_sound(self) -> None:
        if not self._sound_enabled:
            return
        if not self._is_tty():
            raise RuntimeError("audio cue unavailable: output is not a terminal")
        self._out.write("\a")
        self._out.flush()

    def _is_tty(self) -> bool:
        try:
            return bool(self._out.isatty())
        except Exception:
            return False
