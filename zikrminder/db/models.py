"""Data models."""

from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Literal

from zikrminder.utils.constants import (
    DEFAULT_INTERVAL_MINUTES,
    DEFAULT_VOLUME,
    INFINITE_REPEATS,
)

NotificationType = Literal["custom", "system"]
SoundChoice = Literal["default", "bell", "chime", "custom", "none"]
Theme = Literal["system", "dark", "light"]


@dataclass
class ReminderItem:
    """A prompt shown on its own fixed-interval schedule."""

    text: str
    created_at: datetime  # UTC, schedule anchor
    interval_minutes: float = DEFAULT_INTERVAL_MINUTES
    delay_ms: int = 0
    repeats: int = 1  # INFINITE_REPEATS for unbounded
    category: str = "general"
    id: int | None = None

    @property
    def is_unbounded(self) -> bool:
        return self.repeats == INFINITE_REPEATS

    def edited(self, now: datetime, **changes) -> "ReminderItem":
        """Return a copy with changes applied and the schedule restarted at now.

        An edit always resets the delay; the item shows again from the edit time.
        """
        changes.update(created_at=now, delay_ms=0)
        return replace(self, **changes)


@dataclass
class Settings:
    """User settings read by the driver and presenters."""

    theme: Theme = "system"
    volume: float = DEFAULT_VOLUME
    auto_start: bool = False
    language: str = "en"
    notification_sound: SoundChoice = "default"
    custom_sound_path: str | None = None  # File name inside the custom-sounds dir
    notification_type: NotificationType = "custom"


@dataclass
class SoundSpec:
    """Resolved sound for one presentation."""

    sound: str
    path: Path | None = None
    volume: float = DEFAULT_VOLUME

    @property
    def enabled(self) -> bool:
        return self.path is not None


@dataclass
class FiredReminder:
    """Event emitted once per presented occurrence."""

    item_id: int
    text: str
    fired_at: datetime  # UTC


@dataclass
class Prompt:
    """What a display surface renders."""

    item_id: int
    text: str
    theme: str = "system"
    rtl: bool = False
