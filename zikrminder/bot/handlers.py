"""Command handlers."""

import logging
from dataclasses import replace
from typing import List, Tuple

from telegram import Update
from telegram.ext import ContextTypes

from zikrminder.bot.formatters import (
    format_help_message,
    format_item,
    format_item_list,
    format_settings,
    format_status,
    format_welcome_message,
)
from zikrminder.bot.keyboards import delete_confirm_keyboard, status_keyboard
from zikrminder.config import Config
from zikrminder.db.repository import Repository
from zikrminder.engine.driver import ReminderDriver
from zikrminder.presentation.sound import save_custom_sound
from zikrminder.utils.constants import (
    INFINITE_REPEATS,
    LANGUAGES,
    MAX_REPEATS,
    MAX_TEXT_LENGTH,
    MIN_INTERVAL_MINUTES,
    NOTIFICATION_TYPES,
    SOUND_CHOICES,
    THEMES,
)
from zikrminder.utils.time_utils import format_duration, parse_duration, utc_now

logger = logging.getLogger(__name__)


def parse_interval(text: str) -> int | None:
    """Parse a whole number of minutes, at least the minimum interval."""
    try:
        minutes = int(text)
    except ValueError:
        return None
    return minutes if minutes >= MIN_INTERVAL_MINUTES else None


def parse_repeats(text: str) -> int | None:
    """Parse a repeat count; "inf"/"∞" means unbounded."""
    if text.lower() in ("inf", "infinite", "∞"):
        return INFINITE_REPEATS
    try:
        repeats = int(text)
    except ValueError:
        return None
    return repeats if 1 <= repeats <= MAX_REPEATS else None


def parse_add_args(args: List[str]) -> Tuple[int, int, str] | None:
    """Split /add arguments into (minutes, delay_ms, text).

    The optional delay must carry a unit (30s, 10m, 1h30m) so that text
    starting with a number is not mistaken for one.
    """
    if len(args) < 2:
        return None

    minutes = parse_interval(args[0])
    if minutes is None:
        return None

    delay_ms = 0
    rest = args[1:]
    if len(rest) > 1 and not rest[0].isdigit():
        parsed = parse_duration(rest[0])
        if parsed is not None:
            delay_ms = parsed
            rest = rest[1:]

    text = " ".join(rest).strip()
    if not text:
        return None
    return minutes, delay_ms, text


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command."""
    if not update.message:
        return

    driver: ReminderDriver = context.bot_data["driver"]

    await update.message.reply_html(format_welcome_message())
    await update.message.reply_html(
        format_status(driver.state, list(driver.items.values())),
        reply_markup=status_keyboard(driver.paused),
    )


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    if not update.message:
        return

    await update.message.reply_html(format_help_message())


async def list_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /list command - show all adhkar with their next time."""
    if not update.message:
        return

    repo: Repository = context.bot_data["repo"]
    driver: ReminderDriver = context.bot_data["driver"]

    items = await repo.load_items()
    await update.message.reply_html(format_item_list(items, driver.last_fired))


async def add_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /add <minutes> [delay] <text> command."""
    if not update.message:
        return

    parsed = parse_add_args(context.args or [])
    if parsed is None:
        await update.message.reply_html(
            "Usage: /add <code>&lt;minutes&gt; [delay] &lt;text&gt;</code>\n\n"
            f"Minutes must be a whole number of at least {MIN_INTERVAL_MINUTES}.\n"
            "Example: <code>/add 10 30m Subhan Allah</code>"
        )
        return

    minutes, delay_ms, text = parsed
    if len(text) > MAX_TEXT_LENGTH:
        await update.message.reply_text(f"Text too long (max {MAX_TEXT_LENGTH} characters).")
        return

    repo: Repository = context.bot_data["repo"]
    driver: ReminderDriver = context.bot_data["driver"]

    item = await repo.add_item(text=text, interval_minutes=minutes, delay_ms=delay_ms)
    await driver.on_items_changed()

    starts = f"\n⏳ Starts in {format_duration(delay_ms)}" if delay_ms else ""
    await update.message.reply_html(
        f"✓ <b>Added!</b>{starts}\n\n{format_item(item, utc_now())}"
    )


async def edit_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /edit <id> <minutes> <text> command."""
    if not update.message:
        return

    args = context.args or []
    if len(args) < 3:
        await update.message.reply_html(
            "Usage: /edit <code>&lt;id&gt; &lt;minutes&gt; &lt;text&gt;</code>\n\n"
            "Editing restarts the schedule from now."
        )
        return

    try:
        item_id = int(args[0])
    except ValueError:
        await update.message.reply_text("Invalid ID. Must be a number.")
        return

    minutes = parse_interval(args[1])
    if minutes is None:
        await update.message.reply_text(
            f"Invalid interval. Use whole minutes, at least {MIN_INTERVAL_MINUTES}."
        )
        return

    text = " ".join(args[2:]).strip()
    if len(text) > MAX_TEXT_LENGTH:
        await update.message.reply_text(f"Text too long (max {MAX_TEXT_LENGTH} characters).")
        return

    repo: Repository = context.bot_data["repo"]
    driver: ReminderDriver = context.bot_data["driver"]

    item = await repo.edit_item(item_id, text=text, interval_minutes=minutes)
    if item is None:
        await update.message.reply_text("Adhkar not found.")
        return

    await driver.on_items_changed()
    await update.message.reply_html(f"✎ <b>Updated</b>\n\n{format_item(item, utc_now())}")


async def repeats_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /repeats <id> <count|inf> command."""
    if not update.message:
        return

    args = context.args or []
    if len(args) != 2:
        await update.message.reply_html("Usage: /repeats <code>&lt;id&gt; &lt;count|inf&gt;</code>")
        return

    try:
        item_id = int(args[0])
    except ValueError:
        await update.message.reply_text("Invalid ID. Must be a number.")
        return

    repeats = parse_repeats(args[1])
    if repeats is None:
        await update.message.reply_text(f"Repeats must be 1-{MAX_REPEATS} or 'inf'.")
        return

    repo: Repository = context.bot_data["repo"]
    driver: ReminderDriver = context.bot_data["driver"]

    item = await repo.edit_item(item_id, repeats=repeats)
    if item is None:
        await update.message.reply_text("Adhkar not found.")
        return

    await driver.on_items_changed()
    await update.message.reply_html(f"✎ <b>Updated</b>\n\n{format_item(item, utc_now())}")


async def delete_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /delete <id> command - asks for confirmation."""
    if not update.message:
        return

    if not context.args or len(context.args) != 1:
        await update.message.reply_text("Usage: /delete <id>")
        return

    try:
        item_id = int(context.args[0])
    except ValueError:
        await update.message.reply_text("Invalid ID. Must be a number.")
        return

    repo: Repository = context.bot_data["repo"]
    item = await repo.get_item(item_id)
    if item is None:
        await update.message.reply_text("Adhkar not found.")
        return

    await update.message.reply_html(
        f"Delete <b>{format_item(item, utc_now())}</b>?",
        reply_markup=delete_confirm_keyboard(item_id),
    )


async def pause_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /pause command."""
    if not update.message:
        return

    driver: ReminderDriver = context.bot_data["driver"]
    driver.pause()
    await update.message.reply_html(
        "⏸ Reminders paused.", reply_markup=status_keyboard(driver.paused)
    )


async def resume_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /resume command."""
    if not update.message:
        return

    driver: ReminderDriver = context.bot_data["driver"]
    driver.resume()
    await update.message.reply_html(
        "▶️ Reminders resumed.", reply_markup=status_keyboard(driver.paused)
    )


async def status_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /status command."""
    if not update.message:
        return

    driver: ReminderDriver = context.bot_data["driver"]
    await update.message.reply_html(
        format_status(driver.state, list(driver.items.values())),
        reply_markup=status_keyboard(driver.paused),
    )


async def settings_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /settings command - show current settings."""
    if not update.message:
        return

    repo: Repository = context.bot_data["repo"]
    settings = await repo.load_settings()
    await update.message.reply_html(format_settings(settings))


async def update_settings(context: ContextTypes.DEFAULT_TYPE, **changes) -> bool:
    """Save changed settings and restart the driver when anything changed."""
    repo: Repository = context.bot_data["repo"]
    driver: ReminderDriver = context.bot_data["driver"]

    settings = await repo.load_settings()
    changed = await repo.save_settings(replace(settings, **changes))
    if changed:
        await driver.on_settings_changed()
    return changed


async def mode_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /mode <custom|system> command."""
    if not update.message:
        return

    if not context.args or context.args[0] not in NOTIFICATION_TYPES:
        await update.message.reply_html("Usage: /mode <code>custom|system</code>")
        return

    await update_settings(context, notification_type=context.args[0])
    await update.message.reply_html(f"✓ Display mode set to <b>{context.args[0]}</b>")


async def sound_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /sound <name> command."""
    if not update.message:
        return

    if not context.args or context.args[0] not in SOUND_CHOICES:
        await update.message.reply_html(
            f"Usage: /sound <code>{'|'.join(SOUND_CHOICES)}</code>"
        )
        return

    choice = context.args[0]
    if choice == "custom":
        repo: Repository = context.bot_data["repo"]
        settings = await repo.load_settings()
        if not settings.custom_sound_path:
            await update.message.reply_text("Send me an audio file first to use as your custom sound.")
            return

    await update_settings(context, notification_sound=choice)
    await update.message.reply_html(f"✓ Sound set to <b>{choice}</b>")


async def volume_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /volume <0-100> command."""
    if not update.message:
        return

    try:
        percent = int(context.args[0]) if context.args else -1
    except ValueError:
        percent = -1

    if not 0 <= percent <= 100:
        await update.message.reply_html("Usage: /volume <code>0-100</code>")
        return

    await update_settings(context, volume=percent / 100)
    await update.message.reply_html(f"✓ Volume set to <b>{percent}%</b>")


async def theme_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /theme <system|dark|light> command."""
    if not update.message:
        return

    if not context.args or context.args[0] not in THEMES:
        await update.message.reply_html(f"Usage: /theme <code>{'|'.join(THEMES)}</code>")
        return

    await update_settings(context, theme=context.args[0])
    await update.message.reply_html(f"✓ Theme set to <b>{context.args[0]}</b>")


async def language_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /language <en|ar> command."""
    if not update.message:
        return

    if not context.args or context.args[0] not in LANGUAGES:
        await update.message.reply_html(f"Usage: /language <code>{'|'.join(LANGUAGES)}</code>")
        return

    await update_settings(context, language=context.args[0])
    await update.message.reply_html(f"✓ Language set to <b>{context.args[0]}</b>")


async def handle_audio_upload(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Save an uploaded audio file as the custom notification sound."""
    if not update.message:
        return

    media = update.message.audio or update.message.voice or update.message.document
    if media is None:
        return

    file = await media.get_file()
    data = await file.download_as_bytearray()

    filename = getattr(media, "file_name", None) or f"custom-{media.file_unique_id}.ogg"
    try:
        name = save_custom_sound(Config.CUSTOM_SOUNDS_DIR, filename, bytes(data))
    except (OSError, ValueError) as e:
        logger.error(f"Failed to save custom sound: {e}")
        await update.message.reply_text("Could not save that file. Please try another one.")
        return

    await update_settings(context, notification_sound="custom", custom_sound_path=name)
    await update.message.reply_html(f"✓ Custom sound set to <b>{name}</b>")
