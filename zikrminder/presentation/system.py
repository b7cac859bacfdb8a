"""System notification presenter."""

import asyncio
import logging
from functools import partial
from typing import Callable

from plyer import notification

from zikrminder.db.models import ReminderItem, Settings, SoundSpec
from zikrminder.presentation.sound import SoundPlayer
from zikrminder.utils.constants import APP_TITLE, MAX_SOUND_SECONDS
from zikrminder.utils.tasks import BackgroundTasks

logger = logging.getLogger(__name__)


class SystemPresenter:
    """Shows an OS notification and plays the sound independently.

    Nothing here waits for the user; the notification is fire-and-forget.
    """

    def __init__(
        self,
        sound_player: SoundPlayer,
        notify: Callable | None = None,
        max_sound_duration: float = MAX_SOUND_SECONDS,
    ):
        self.sound_player = sound_player
        self.max_sound_duration = max_sound_duration
        self.notify = notify or notification.notify
        self._tasks = BackgroundTasks()

    def configure(self, settings: Settings) -> None:
        """OS notifications follow the system theme; nothing to apply."""

    def present(self, item: ReminderItem, sound: SoundSpec) -> None:
        try:
            self._show_notification(item)
        except Exception as e:
            logger.error(f"Error creating system notification: {e}")

        if not sound.enabled:
            return

        try:
            self._tasks.spawn(self._play(sound), f"Sound playback for adhkar {item.id}")
        except Exception as e:
            logger.error(f"Error playing notification sound: {e}")

    def close(self) -> None:
        self._tasks.cancel_all()

    async def _play(self, sound: SoundSpec) -> None:
        try:
            await asyncio.wait_for(
                self.sound_player.play(sound.path, sound.volume),  # type: ignore
                self.max_sound_duration,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Sound still playing after {self.max_sound_duration}s, stopped it")

    def _show_notification(self, item: ReminderItem) -> None:
        show = partial(
            self.notify,
            title=APP_TITLE,
            message=item.text,
            app_name=APP_TITLE,
            timeout=10,
        )
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            show()
            return

        # Some notification backends block; keep the tick free of them
        future = loop.run_in_executor(None, show)
        future.add_done_callback(_log_notify_error)


def _log_notify_error(future: asyncio.Future) -> None:
    if not future.cancelled() and future.exception() is not None:
        logger.error(f"Error creating system notification: {future.exception()}")
