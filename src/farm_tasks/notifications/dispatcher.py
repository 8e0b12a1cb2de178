# src/farm_tasks/notifications/dispatcher.py

from __future__ import annotations

"""
Notification dispatcher.

Best-effort side channel: nothing here raises to the caller.
- permission not granted -> silent no-op
- background push preferred, foreground notification as fallback
- audio cue always attempted, failures only produce a local warning
"""

import logging
from collections.abc import Callable

from ..core.ports import NotificationPlatform
from ..tasks.task_models import PermissionState

logger = logging.getLogger(__name__)

Navigator = Callable[[str], None]


class NotificationDispatcher:
    def __init__(self, platform: NotificationPlatform, *, navigate: Navigator | None = None) -> None:
        self.platform = platform
        self._navigate = navigate

    def permission(self) -> PermissionState:
        try:
            return self.platform.permission()
        except Exception:
            logger.warning("Permission query failed; assuming default", exc_info=True)
            return PermissionState.DEFAULT

    async def request_permission(self) -> PermissionState:
        try:
            result = await self.platform.request_permission()
        except Exception:
            logger.warning("Permission request failed; treating as denied", exc_info=True)
            return PermissionState.DENIED
        logger.info("Notification permission: %s", result.value)
        return result

    async def send_notification(
        self,
        title: str,
        *,
        body: str | None = None,
        action_url: str | None = None,
    ) -> None:
        if self.permission() != PermissionState.GRANTED:
            logger.debug("Notification skipped (no permission): %s", title)
            return

        shown = False
        background = self.platform.background_service()
        if background is not None:
            try:
                await background.show_notification(title, body=body, data={"url": action_url})
                shown = True
            except Exception:
                logger.warning("Background notification failed; falling back to foreground", exc_info=True)

        if not shown:
            try:
                self.platform.show_foreground(title, body=body, on_click=self._click_handler(action_url))
            except Exception:
                logger.warning("Foreground notification failed: %s", title, exc_info=True)

        await self._play_sound()

    def _click_handler(self, action_url: str | None) -> Callable[[], None]:
        def on_click() -> None:
            if action_url and self._navigate is not None:
                self._navigate(action_url)

        return on_click

    async def _play_sound(self) -> None:
        try:
            await self.platform.play_sound()
        except Exception as e:
            logger.warning("Notification sound blocked: %r", e)
