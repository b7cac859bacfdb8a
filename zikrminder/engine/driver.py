"""Reminder driver - the single periodic tick that fires due adhkar."""

import asyncio
import inspect
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Protocol

from zikrminder.db.models import FiredReminder, ReminderItem, Settings, SoundSpec
from zikrminder.engine.schedule import is_due
from zikrminder.errors import SchedulerStartError, StoreError
from zikrminder.utils.constants import DEFAULT_TICK_MS
from zikrminder.utils.tasks import BackgroundTasks
from zikrminder.utils.time_utils import Clock, SystemClock

logger = logging.getLogger(__name__)

TICK_TASK_NAME = "zikrminder-tick"


class DriverState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


class ItemStore(Protocol):
    async def load_items(self) -> List[ReminderItem]:
        ...


class SettingsStore(Protocol):
    async def load_settings(self) -> Settings:
        ...


class Presenter(Protocol):
    def present(self, item: ReminderItem, sound: SoundSpec) -> None:
        ...

    def configure(self, settings: Settings) -> None:
        ...

    def close(self) -> None:
        ...


def _silent(settings: Settings) -> SoundSpec:
    return SoundSpec(sound="none", volume=settings.volume)


class ReminderDriver:
    """Owns the tick, the live item set, last-fired bookkeeping and pause state.

    All state is touched only from the event loop thread: the tick body is
    synchronous, so two ticks can never interleave.
    """

    def __init__(
        self,
        item_store: ItemStore,
        settings_store: SettingsStore,
        presenters: Dict[str, Presenter],
        sound_resolver: Callable[[Settings], SoundSpec] = _silent,
        clock: Clock | None = None,
        tick_ms: int = DEFAULT_TICK_MS,
    ):
        if tick_ms <= 0:
            raise ValueError("tick_ms must be positive")
        if not presenters:
            raise ValueError("At least one presenter is required")

        self.item_store = item_store
        self.settings_store = settings_store
        self.presenters = presenters
        self.sound_resolver = sound_resolver
        self.clock = clock or SystemClock()
        self.tick_ms = tick_ms

        self.items: Dict[int, ReminderItem] = {}
        self.last_fired: Dict[int, datetime] = {}
        self.paused = False
        self.settings = Settings()
        self.sound = sound_resolver(self.settings)

        self._tick_task: asyncio.Task | None = None
        self._listeners: List[Callable[[FiredReminder], Any]] = []
        self._pause_listeners: List[Callable[[bool], Any]] = []
        self._observer_tasks = BackgroundTasks()

    @property
    def state(self) -> DriverState:
        if self._tick_task is None:
            return DriverState.STOPPED
        return DriverState.PAUSED if self.paused else DriverState.RUNNING

    # Lifecycle

    async def start(self) -> None:
        """(Re)load items and settings and arm exactly one periodic tick.

        Safe to call repeatedly. On a store failure the tick is still armed on
        the last known items and the StoreError is re-raised to the caller.
        """
        self._cancel_tick()

        load_error: StoreError | None = None
        try:
            items = await self.item_store.load_items()
            settings = await self.settings_store.load_settings()
        except StoreError as e:
            logger.error(f"Reload failed, keeping {len(self.items)} known adhkar: {e}")
            load_error = e
        else:
            self._apply(items, settings)

        # A concurrent start() may have armed a tick while we were loading
        self._cancel_tick()
        self._arm_tick()

        if load_error:
            raise load_error

    async def on_items_changed(self) -> None:
        """Restart so added, removed or edited items take effect on the next tick."""
        await self.start()

    async def on_settings_changed(self) -> None:
        """Restart so mode, sound and volume changes take effect."""
        await self.start()

    def stop(self) -> None:
        """Cancel the tick and release per-item and presenter resources."""
        was_running = self._tick_task is not None
        self._cancel_tick()
        self._observer_tasks.cancel_all()
        self.items.clear()
        self.last_fired.clear()

        for name, presenter in self.presenters.items():
            try:
                presenter.close()
            except Exception as e:
                logger.error(f"Error closing {name} presenter: {e}")

        if was_running:
            logger.info("Reminder driver stopped")

    # Pause control

    def set_paused(self, paused: bool) -> None:
        """Set the single pause flag; every control surface goes through here."""
        if paused == self.paused:
            return

        self.paused = paused
        logger.info("Reminders paused" if paused else "Reminders resumed")

        for callback in list(self._pause_listeners):
            self._dispatch(callback, paused)

    def pause(self) -> None:
        self.set_paused(True)

    def resume(self) -> None:
        """Resume; occurrences missed while paused are not replayed."""
        self.set_paused(False)

    def toggle_pause(self) -> bool:
        self.set_paused(not self.paused)
        return self.paused

    # Observers

    def add_listener(self, callback: Callable[[FiredReminder], Any]) -> None:
        """Register a fired-reminder observer. Coroutine functions are scheduled."""
        self._listeners.append(callback)

    def add_pause_listener(self, callback: Callable[[bool], Any]) -> None:
        self._pause_listeners.append(callback)

    # Tick

    def tick(self) -> List[FiredReminder]:
        """Evaluate every item once and fire the due ones.

        Returns:
            The events fired during this tick
        """
        if self.paused:
            return []

        now = self.clock.now()
        fired = []

        for item in list(self.items.values()):
            try:
                due = is_due(item, now, self.last_fired.get(item.id), self.tick_ms)
            except Exception as e:
                logger.error(f"Error evaluating adhkar {item.id}: {e}")
                continue

            if due:
                fired.append(self._fire(item, now))

        return fired

    def _fire(self, item: ReminderItem, now: datetime) -> FiredReminder:
        logger.info(f"Sending reminder {item.id}: {item.text}")

        presenter = self._current_presenter()
        try:
            presenter.present(item, self.sound)
        except Exception as e:
            logger.error(f"Failed to present adhkar {item.id}: {e}")

        event = FiredReminder(item_id=item.id, text=item.text, fired_at=now)  # type: ignore
        for callback in list(self._listeners):
            self._dispatch(callback, event)

        self.last_fired[item.id] = now  # type: ignore
        return event

    # Helpers

    def _apply(self, items: List[ReminderItem], settings: Settings) -> None:
        self.items = {item.id: item for item in items}  # type: ignore
        # Keep bookkeeping for surviving ids so a reload does not re-fire them
        self.last_fired = {
            item_id: fired_at
            for item_id, fired_at in self.last_fired.items()
            if item_id in self.items
        }
        self.settings = settings

        try:
            self.sound = self.sound_resolver(settings)
        except Exception as e:
            logger.error(f"Could not resolve notification sound: {e}")
            self.sound = _silent(settings)

        for name, presenter in self.presenters.items():
            try:
                presenter.configure(settings)
            except Exception as e:
                logger.error(f"Error configuring {name} presenter: {e}")

        logger.info(
            f"Loaded {len(self.items)} adhkar "
            f"(mode: {settings.notification_type}, sound: {self.sound.sound})"
        )

    def _current_presenter(self) -> Presenter:
        presenter = self.presenters.get(self.settings.notification_type)
        if presenter is None:
            name, presenter = next(iter(self.presenters.items()))
            logger.warning(
                f"No presenter for mode {self.settings.notification_type!r}, using {name}"
            )
        return presenter

    def _arm_tick(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise SchedulerStartError("No running event loop to arm the tick") from e

        self._tick_task = loop.create_task(self._run(), name=TICK_TASK_NAME)
        logger.info(f"Tick armed (every {self.tick_ms} ms)")

    def _cancel_tick(self) -> None:
        if self._tick_task is not None:
            self._tick_task.cancel()
            self._tick_task = None

    async def _run(self) -> None:
        """Periodic loop on fixed deadlines so ticks do not drift."""
        loop = asyncio.get_running_loop()
        period = self.tick_ms / 1000
        deadline = loop.time() + period

        while True:
            await asyncio.sleep(max(deadline - loop.time(), 0))

            try:
                self.tick()
            except Exception as e:
                logger.error(f"Tick failed: {e}")

            deadline += period
            now = loop.time()
            if deadline < now:
                # Loop was blocked or the machine slept; missed ticks are not replayed
                deadline = now + period

    def _dispatch(self, callback: Callable, arg: Any) -> None:
        name = getattr(callback, "__name__", repr(callback))
        try:
            result = callback(arg)
            if inspect.iscoroutine(result):
                self._observer_tasks.spawn(result, f"Observer {name}")
            elif inspect.isawaitable(result):
                self._observer_tasks.spawn(_wait_for(result), f"Observer {name}")
        except Exception as e:
            logger.error(f"Observer {name} failed: {e}")


async def _wait_for(awaitable: Awaitable) -> Any:
    return await awaitable

