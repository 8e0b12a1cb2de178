# tests/fakes.py

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from farm_tasks.tasks.task_models import PermissionState, ScheduleEntry, ScheduleKey


class FakeClock:
    """Mutable wall clock for deterministic reconciliation tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@dataclass(slots=True)
class ShownNotification:
    channel: str  # "background" | "foreground"
    title: str
    body: str | None
    data: dict[str, Any] | None = None
    on_click: Callable[[], None] | None = None


@dataclass(slots=True)
class FakeBackground:
    shown: list[ShownNotification] = field(default_factory=list)
    fail: bool = False

    async def show_notification(
        self,
        title: str,
        *,
        body: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        if self.fail:
            raise RuntimeError("push endpoint down")
        self.shown.append(ShownNotification("background", title, body, data=data))


@dataclass(slots=True)
class FakeNotificationPlatform:
    """
    Fake NotificationPlatform used by dispatcher/watcher tests.

    Collects every shown notification (both channels) in order.
    """

    state: PermissionState = PermissionState.GRANTED
    request_result: PermissionState = PermissionState.GRANTED
    background: FakeBackground | None = None
    sound_fails: bool = False
    shown: list[ShownNotification] = field(default_factory=list)
    sounds: int = 0

    def permission(self) -> PermissionState:
        return self.state

    async def request_permission(self) -> PermissionState:
        self.state = self.request_result
        return self.state

    def background_service(self) -> FakeBackground | None:
        return self.background

    def show_foreground(
        self,
        title: str,
        *,
        body: str | None = None,
        on_click: Callable[[], None] | None = None,
    ) -> None:
        self.shown.append(ShownNotification("foreground", title, body, on_click=on_click))

    async def play_sound(self) -> None:
        if self.sound_fails:
            raise RuntimeError("autoplay blocked")
        self.sounds += 1

    @property
    def titles(self) -> list[str]:
        out = [n.title for n in self.shown]
        if self.background is not None:
            out += [n.title for n in self.background.shown]
        return out


@dataclass(slots=True)
class FakeScheduler:
    """Records what the reconciler hands to the timer registry."""

    scheduled: list[ScheduleEntry] = field(default_factory=list)
    kept: list[ScheduleKey] = field(default_factory=list)

    def schedule(self, entry: ScheduleEntry) -> None:
        self.scheduled.append(entry)

    def prune(self, keep: Iterable[ScheduleKey]) -> None:
        self.kept = list(keep)
