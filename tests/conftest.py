"""Shared fixtures and fakes."""

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List

import pytest

from zikrminder.db.models import ReminderItem, Settings, SoundSpec
from zikrminder.errors import SoundPlaybackError, StoreError

T0 = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)

    def set(self, seconds_after_t0: float) -> None:
        self.current = T0 + timedelta(seconds=seconds_after_t0)


class FakeStore:
    """In-memory item and settings store."""

    def __init__(self, items: List[ReminderItem] | None = None, settings: Settings | None = None):
        self.items = list(items or [])
        self.settings = settings or Settings()
        self.fail = False
        self.loads = 0

    async def load_items(self) -> List[ReminderItem]:
        self.loads += 1
        if self.fail:
            raise StoreError("disk on fire")
        return list(self.items)

    async def load_settings(self) -> Settings:
        if self.fail:
            raise StoreError("disk on fire")
        return self.settings


class RecordingPresenter:
    def __init__(self, fail_for: set | None = None):
        self.shown: List[tuple] = []
        self.configured: List[Settings] = []
        self.closed = 0
        self.fail_for = fail_for or set()

    def present(self, item: ReminderItem, sound: SoundSpec) -> None:
        if item.id in self.fail_for:
            raise RuntimeError(f"cannot show {item.id}")
        self.shown.append((item.id, sound))

    def configure(self, settings: Settings) -> None:
        self.configured.append(settings)

    def close(self) -> None:
        self.closed += 1


class FakeSoundPlayer:
    """Player whose playback finishes when the test says so."""

    name = "fake"
    binary = "fake"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.played: List[tuple] = []

    async def play(self, path: Path, volume: float) -> None:
        self.played.append((path, volume))
        if self.fail:
            raise SoundPlaybackError("speaker unplugged")


class HangingSoundPlayer(FakeSoundPlayer):
    """Player whose playback never finishes on its own."""

    def __init__(self):
        super().__init__()
        self.stopped = 0

    async def play(self, path: Path, volume: float) -> None:
        self.played.append((path, volume))
        try:
            await asyncio.Event().wait()
        finally:
            self.stopped += 1


class FakeSurface:
    def __init__(self, fail_show: bool = False):
        self.fail_show = fail_show
        self.shown = []
        self.hidden = 0
        self.theme = None

    def show(self, prompt) -> None:
        if self.fail_show:
            raise RuntimeError("window could not be created")
        self.shown.append(prompt)

    def hide(self) -> None:
        self.hidden += 1

    def apply_theme(self, theme: str) -> None:
        self.theme = theme


def make_item(item_id: int = 1, interval_minutes: float = 5, delay_ms: int = 0, **kwargs) -> ReminderItem:
    kwargs.setdefault("created_at", T0)
    kwargs.setdefault("text", f"Dhikr {item_id}")
    return ReminderItem(
        id=item_id, interval_minutes=interval_minutes, delay_ms=delay_ms, **kwargs
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def presenter():
    return RecordingPresenter()
