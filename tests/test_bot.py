"""Tests for control bot parsing, buttons and message formatting."""

import asyncio
from datetime import timedelta
from types import SimpleNamespace

import pytest
from conftest import T0, FakeClock, FakeSoundPlayer, FakeStore, FakeSurface, make_item

from zikrminder.bot.callbacks import callback_router
from zikrminder.bot.formatters import (
    format_fired_message,
    format_item,
    format_item_list,
    format_settings,
    format_status,
)
from zikrminder.bot.handlers import parse_add_args, parse_interval, parse_repeats
from zikrminder.bot.keyboards import fired_keyboard
from zikrminder.config import Config
from zikrminder.db.models import FiredReminder, Settings, SoundSpec
from zikrminder.engine.driver import DriverState, ReminderDriver
from zikrminder.presentation.floating import FloatingPresenter
from zikrminder.utils.constants import INFINITE_REPEATS

OWNER_ID = 42


def test_parse_add_without_delay():
    """Test /add with minutes and text."""
    assert parse_add_args(["5", "Subhan", "Allah"]) == (5, 0, "Subhan Allah")


def test_parse_add_with_delay():
    """Test /add with a delay that carries a unit."""
    assert parse_add_args(["10", "1h30m", "Alhamdulillah"]) == (10, 5400000, "Alhamdulillah")


def test_parse_add_number_is_text():
    """Test a bare number after the interval is kept as text."""
    assert parse_add_args(["5", "33", "times"]) == (5, 0, "33 times")


def test_parse_add_delay_alone_is_text():
    """Test a lone duration-looking word is treated as the text."""
    assert parse_add_args(["5", "10m"]) == (5, 0, "10m")


def test_parse_add_invalid():
    """Test bad intervals and missing text are rejected."""
    assert parse_add_args([]) is None
    assert parse_add_args(["5"]) is None
    assert parse_add_args(["0", "Allahu Akbar"]) is None
    assert parse_add_args(["often", "Allahu Akbar"]) is None


def test_parse_interval():
    """Test interval parsing enforces whole minutes above the minimum."""
    assert parse_interval("15") == 15
    assert parse_interval("0") is None
    assert parse_interval("2.5") is None


def test_parse_repeats():
    """Test repeat counts and the unbounded keyword."""
    assert parse_repeats("33") == 33
    assert parse_repeats("inf") == INFINITE_REPEATS
    assert parse_repeats("∞") == INFINITE_REPEATS
    assert parse_repeats("0") is None
    assert parse_repeats("many") is None


def test_format_item_escapes_text():
    """Test item text is HTML-escaped and the next time shown."""
    item = make_item(7, text="<b>Dhikr</b> & more", repeats=INFINITE_REPEATS)

    text = format_item(item, T0 + timedelta(minutes=1))

    assert "&lt;b&gt;Dhikr&lt;/b&gt; &amp; more" in text
    assert "(ID: 7)" in text
    assert "Every 5 minutes · ∞" in text
    assert "in 4 minutes" in text


def test_format_item_list_empty():
    """Test the empty list message."""
    assert "no adhkar" in format_item_list([])


def test_format_item_list_counts():
    """Test the list header counts items."""
    text = format_item_list([make_item(1), make_item(2)], now=T0)

    assert "Your adhkar (2)" in text


def test_format_status_running():
    """Test running status names the soonest item."""
    items = [make_item(1, interval_minutes=10, text="Later"), make_item(2, text="Sooner")]

    text = format_status(DriverState.RUNNING, items, T0 + timedelta(minutes=1))

    assert "running" in text
    assert "Sooner" in text


def test_format_status_paused():
    """Test paused status doesn't promise a next reminder."""
    text = format_status(DriverState.PAUSED, [make_item(1)], T0)

    assert "paused" in text
    assert "Next" not in text


def test_format_settings():
    """Test settings are listed with volume as a percentage."""
    text = format_settings(Settings(notification_sound="custom", custom_sound_path="adhan.mp3"))

    assert "Volume: 80%" in text
    assert "custom (adhan.mp3)" in text


def test_format_fired_message():
    """Test fired reminders are escaped."""
    text = format_fired_message(FiredReminder(item_id=1, text="a < b", fired_at=T0))

    assert "a &lt; b" in text


class FakeMessage:
    def __init__(self):
        self.edited_text = []
        self.edited_markup = []

    async def edit_text(self, text, **kwargs):
        self.edited_text.append(text)

    async def edit_reply_markup(self, reply_markup=None, **kwargs):
        self.edited_markup.append(reply_markup)


class FakeQuery:
    def __init__(self, data):
        self.data = data
        self.message = FakeMessage()
        self.answers = []

    async def answer(self, text=None, **kwargs):
        self.answers.append(text)


def press(driver, data):
    """Build the router call for one owner button press, with its query."""
    query = FakeQuery(data)
    update = SimpleNamespace(callback_query=query, effective_user=SimpleNamespace(id=OWNER_ID))
    context = SimpleNamespace(bot_data={"driver": driver, "repo": None})
    return query, callback_router(update, context)


@pytest.fixture
def owner(monkeypatch):
    monkeypatch.setattr(Config, "TELEGRAM_OWNER_ID", OWNER_ID)


def floating_driver():
    presenter = FloatingPresenter(FakeSurface(), FakeSoundPlayer(), fallback_timeout=10)
    driver = ReminderDriver(FakeStore(), FakeStore(), {"custom": presenter}, clock=FakeClock())
    return driver, presenter


def markup_data(markup):
    return [button.callback_data for row in markup.inline_keyboard for button in row]


def test_fired_keyboard_buttons():
    """Test mirrored reminders carry pause, dismiss and keep-open buttons."""
    assert markup_data(fired_keyboard(False, 3)) == [
        "pause:fired:3",
        "prompt:dismiss:3",
        "prompt:hold:3",
    ]
    assert "prompt:release:3" in markup_data(fired_keyboard(False, 3, holding=True))


def test_dismiss_button_closes_prompt(owner):
    """Test the dismiss button takes the on-screen prompt down."""

    async def scenario():
        driver, presenter = floating_driver()
        presenter.present(make_item(1), SoundSpec(sound="none"))
        query, routed = press(driver, "prompt:dismiss:1")
        await routed
        busy = presenter.busy
        presenter.close()
        return query, busy

    query, busy = asyncio.run(scenario())

    assert not busy
    assert query.answers == ["✖ Dismissed"]


def test_keep_open_and_release_buttons(owner):
    """Test the keep-open button holds the prompt and let-close releases it."""

    async def scenario():
        driver, presenter = floating_driver()
        presenter.present(make_item(1), SoundSpec(sound="none"))
        query, routed = press(driver, "prompt:hold:1")
        await routed
        held = presenter.holding
        _, routed = press(driver, "prompt:release:1")
        await routed
        released = not presenter.holding
        presenter.close()
        return query, held, released

    query, held, released = asyncio.run(scenario())

    assert held and released
    assert "prompt:release:1" in markup_data(query.message.edited_markup[0])


def test_prompt_button_for_closed_prompt(owner):
    """Test pressing a button for a prompt no longer shown changes nothing."""

    async def scenario():
        driver, presenter = floating_driver()
        presenter.present(make_item(2), SoundSpec(sound="none"))
        query, routed = press(driver, "prompt:dismiss:1")
        await routed
        current = presenter.current
        presenter.close()
        return query, current

    query, current = asyncio.run(scenario())

    assert current.item_id == 2
    assert query.answers == ["Already closed"]
    assert query.message.edited_markup == []


def test_pause_from_reminder_keeps_its_text(owner):
    """Test pausing from a mirrored reminder only swaps its buttons."""

    async def scenario():
        driver, _ = floating_driver()
        query, routed = press(driver, "pause:fired:1")
        await routed
        return driver, query

    driver, query = asyncio.run(scenario())

    assert driver.paused
    assert query.message.edited_text == []
    assert "pause:fired:1" in markup_data(query.message.edited_markup[0])
