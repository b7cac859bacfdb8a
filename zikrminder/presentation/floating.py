"""Floating display presenter - one prompt on screen at a time.

While a prompt is visible, later occurrences wait in arrival order and are
shown once the current prompt closes. A prompt closes on its own shortly
after its sound finishes (or after a fallback timeout when there is no
sound or playback fails). Playback is cut off after max_sound_duration so a
hung player cannot keep the slot. Holding a prompt keeps it open until it
is released.
"""

import asyncio
import logging
import re
from collections import deque
from typing import Deque, Protocol, Tuple

from zikrminder.db.models import Prompt, ReminderItem, Settings, SoundSpec
from zikrminder.errors import SoundPlaybackError
from zikrminder.presentation.sound import SoundPlayer
from zikrminder.utils.constants import MAX_PENDING_PROMPTS, MAX_SOUND_SECONDS
from zikrminder.utils.tasks import BackgroundTasks

logger = logging.getLogger(__name__)

_ARABIC = re.compile("[\u0600-\u06FF]")


def is_arabic(text: str) -> bool:
    """Check if text contains Arabic characters (rendered right-to-left)."""
    return bool(_ARABIC.search(text))


class Surface(Protocol):
    """Renders prompts. Implementations may raise; the presenter copes."""

    def show(self, prompt: Prompt) -> None:
        ...

    def hide(self) -> None:
        ...

    def apply_theme(self, theme: str) -> None:
        ...


class FloatingPresenter:
    """Single-slot presenter with a FIFO of pending prompts."""

    def __init__(
        self,
        surface: Surface,
        sound_player: SoundPlayer,
        dismiss_delay: float = 1.0,
        fallback_timeout: float = 4.0,
        max_pending: int = MAX_PENDING_PROMPTS,
        max_sound_duration: float = MAX_SOUND_SECONDS,
    ):
        self.surface = surface
        self.sound_player = sound_player
        self.dismiss_delay = dismiss_delay
        self.fallback_timeout = fallback_timeout
        self.max_pending = max_pending
        self.max_sound_duration = max_sound_duration
        self.theme = "system"

        self.current: Prompt | None = None
        self.pending: Deque[Tuple[ReminderItem, SoundSpec]] = deque()

        self._generation = 0
        self._sound_done = False
        self._holding = False
        self._close_handle: asyncio.TimerHandle | None = None
        self._sound_task: asyncio.Task | None = None
        self._tasks = BackgroundTasks()

    @property
    def busy(self) -> bool:
        return self.current is not None

    @property
    def holding(self) -> bool:
        return self._holding

    def is_showing(self, item_id: int) -> bool:
        return self.current is not None and self.current.item_id == item_id

    def configure(self, settings: Settings) -> None:
        self.theme = settings.theme
        try:
            self.surface.apply_theme(settings.theme)
        except Exception as e:
            logger.error(f"Error updating display theme: {e}")

    def present(self, item: ReminderItem, sound: SoundSpec) -> None:
        if self.busy:
            if len(self.pending) >= self.max_pending:
                logger.warning(f"Display queue full, dropping adhkar {item.id}")
                return
            self.pending.append((item, sound))
            logger.info(f"Display busy, queued adhkar {item.id}")
            return

        self._show(item, sound)

    # User interaction

    def hold(self) -> None:
        """Suspend auto-dismiss of the current prompt."""
        self._holding = True
        self._cancel_close()

    def release(self) -> None:
        """Re-arm auto-dismiss; closes soon if the sound already ended."""
        self._holding = False
        if self.busy and self._sound_done:
            self._schedule_close(self.dismiss_delay)

    def dismiss(self) -> None:
        """Close the current prompt now."""
        if self.busy:
            self._close()

    def close(self) -> None:
        """Drop everything queued and take the current prompt down."""
        self.pending.clear()
        if self.busy:
            self._close()
        self._tasks.cancel_all()

    # Slot handling

    def _show(self, item: ReminderItem, sound: SoundSpec) -> None:
        self._generation += 1
        generation = self._generation
        self._sound_done = False
        self._holding = False
        self.current = Prompt(
            item_id=item.id,  # type: ignore
            text=item.text,
            theme=self.theme,
            rtl=is_arabic(item.text),
        )

        try:
            self.surface.show(self.current)
            if sound.enabled:
                self._sound_task = self._tasks.spawn(
                    self._play(sound, generation), f"Sound playback for adhkar {item.id}"
                )
            else:
                self._sound_finished(generation, self.fallback_timeout)
        except Exception as e:
            logger.error(f"Error showing adhkar {item.id}: {e}")
            self._close()

    async def _play(self, sound: SoundSpec, generation: int) -> None:
        try:
            await asyncio.wait_for(
                self.sound_player.play(sound.path, sound.volume),  # type: ignore
                self.max_sound_duration,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Sound still playing after {self.max_sound_duration}s, stopped it"
            )
            delay = self.fallback_timeout
        except SoundPlaybackError as e:
            logger.warning(f"Sound failed, closing after fallback timeout: {e}")
            delay = self.fallback_timeout
        except Exception as e:
            logger.error(f"Error playing notification sound: {e}")
            delay = self.fallback_timeout
        else:
            delay = self.dismiss_delay

        self._sound_finished(generation, delay)

    def _sound_finished(self, generation: int, delay: float) -> None:
        if generation != self._generation:
            return
        self._sound_done = True
        if not self._holding:
            self._schedule_close(delay)

    def _schedule_close(self, delay: float) -> None:
        if self._close_handle is not None:
            return
        loop = asyncio.get_running_loop()
        self._close_handle = loop.call_later(delay, self._auto_close, self._generation)

    def _cancel_close(self) -> None:
        if self._close_handle is not None:
            self._close_handle.cancel()
            self._close_handle = None

    def _auto_close(self, generation: int) -> None:
        self._close_handle = None
        if generation != self._generation or self._holding:
            return
        self._close()

    def _close(self) -> None:
        """Free the slot, then show the next pending prompt."""
        self._cancel_close()
        if self._sound_task is not None:
            self._sound_task.cancel()
            self._sound_task = None

        self.current = None
        self._generation += 1
        try:
            self.surface.hide()
        except Exception as e:
            logger.error(f"Error hiding prompt: {e}")

        if self.pending:
            item, sound = self.pending.popleft()
            self._show(item, sound)
