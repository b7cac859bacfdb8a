"""Message text formatters."""

from datetime import datetime
from html import escape
from typing import Dict, List

from zikrminder.db.models import FiredReminder, ReminderItem, Settings
from zikrminder.engine.driver import DriverState
from zikrminder.engine.schedule import interval_ms, next_occurrence
from zikrminder.utils.time_utils import (
    format_duration,
    format_relative_time,
    to_local,
    utc_now,
)


def format_repeats(item: ReminderItem) -> str:
    return "∞" if item.is_unbounded else f"×{item.repeats}"


def format_item(
    item: ReminderItem, now: datetime, last_fired_at: datetime | None = None
) -> str:
    """Format one adhkar with its schedule."""
    upcoming = next_occurrence(item, now)
    lines = [
        f"<b>{escape(item.text)}</b> (ID: {item.id})",
        f"🔁 Every {format_duration(interval_ms(item))} · {format_repeats(item)}",
        f"⏰ Next: {to_local(upcoming).strftime('%I:%M:%S %p')} "
        f"({format_relative_time(upcoming, now)})",
    ]
    if last_fired_at:
        lines.append(f"✓ Last shown: {to_local(last_fired_at).strftime('%I:%M:%S %p')}")
    return "\n".join(lines)


def format_item_list(
    items: List[ReminderItem],
    last_fired: Dict[int, datetime] | None = None,
    now: datetime | None = None,
) -> str:
    """Format a list of adhkar."""
    if not items:
        return "You have no adhkar yet. Add one with /add."

    now = now or utc_now()
    last_fired = last_fired or {}
    blocks = [format_item(item, now, last_fired.get(item.id)) for item in items]  # type: ignore
    return f"<b>Your adhkar ({len(items)})</b>\n\n" + "\n\n".join(blocks)


def format_status(
    state: DriverState, items: List[ReminderItem], now: datetime | None = None
) -> str:
    """Format the driver status with the soonest upcoming reminder."""
    now = now or utc_now()
    icon = {
        DriverState.RUNNING: "▶️",
        DriverState.PAUSED: "⏸",
        DriverState.STOPPED: "⏹",
    }[state]
    lines = [f"{icon} Reminders are <b>{state.value}</b>", f"📿 {len(items)} adhkar scheduled"]

    if items and state == DriverState.RUNNING:
        soonest = min(items, key=lambda item: next_occurrence(item, now))
        upcoming = next_occurrence(soonest, now)
        lines.append(
            f"⏰ Next: <b>{escape(soonest.text)}</b> {format_relative_time(upcoming, now)}"
        )

    return "\n".join(lines)


def format_settings(settings: Settings) -> str:
    sound = settings.notification_sound
    if sound == "custom":
        sound = f"custom ({escape(settings.custom_sound_path or 'no file')})"

    return (
        "<b>Your Settings</b>\n\n"
        f"🪟 Display: {settings.notification_type}\n"
        f"🔔 Sound: {sound}\n"
        f"🔊 Volume: {round(settings.volume * 100)}%\n"
        f"🎨 Theme: {settings.theme}\n"
        f"🌐 Language: {settings.language}\n\n"
        "<b>Commands to change:</b>\n"
        "• /mode <code>custom|system</code>\n"
        "• /sound <code>default|bell|chime|custom|none</code>\n"
        "• /volume <code>0-100</code>\n"
        "• /theme <code>system|dark|light</code>\n"
        "• /language <code>en|ar</code>\n\n"
        "Send an audio file to use it as your custom sound."
    )


def format_fired_message(event: FiredReminder) -> str:
    return (
        f"🕌 <b>{escape(event.text)}</b>\n"
        f"<i>{to_local(event.fired_at).strftime('%I:%M:%S %p')}</i>"
    )


def format_welcome_message() -> str:
    return (
        "<b>Assalamu alaikum!</b>\n\n"
        "I surface your adhkar on your desktop, each on its own schedule.\n"
        "Use this chat to manage them and pause or resume reminders.\n\n"
        "Try /list to see your adhkar or /help for all commands."
    )


def format_help_message() -> str:
    return (
        "<b>Adhkar</b>\n"
        "• /list - show all adhkar and their next time\n"
        "• /add <code>5 Subhan Allah</code> - every 5 minutes\n"
        "• /add <code>10 1h30m Alhamdulillah</code> - every 10 minutes, starting in 1h30m\n"
        "• /edit <code>3 15 Allahu Akbar</code> - change text/interval, restarts now\n"
        "• /repeats <code>3 33</code> or <code>3 inf</code>\n"
        "• /delete <code>3</code>\n\n"
        "<b>Control</b>\n"
        "• /pause, /resume, /status\n\n"
        "<b>Settings</b>\n"
        "• /settings, /mode, /sound, /volume, /theme, /language"
    )
