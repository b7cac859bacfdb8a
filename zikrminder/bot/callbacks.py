"""Callback query handlers for inline buttons."""

import logging
from html import escape

from telegram import Update
from telegram.ext import ContextTypes

from zikrminder.bot.formatters import format_item_list, format_settings, format_status
from zikrminder.bot.keyboards import fired_keyboard, status_keyboard
from zikrminder.config import Config
from zikrminder.db.repository import Repository
from zikrminder.engine.driver import ReminderDriver
from zikrminder.presentation.floating import FloatingPresenter

logger = logging.getLogger(__name__)


async def handle_pause_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle the pause/resume toggle button."""
    if not update.callback_query:
        return

    driver: ReminderDriver = context.bot_data["driver"]
    paused = driver.toggle_pause()

    if update.callback_query.message:
        await update.callback_query.message.edit_text(
            format_status(driver.state, list(driver.items.values())),
            parse_mode="HTML",
            reply_markup=status_keyboard(paused),
        )
    await update.callback_query.answer("⏸ Paused" if paused else "▶️ Resumed")


async def handle_fired_pause_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE, item_id: int
) -> None:
    """Toggle pause from a mirrored reminder, keeping the reminder text."""
    if not update.callback_query:
        return

    driver: ReminderDriver = context.bot_data["driver"]
    paused = driver.toggle_pause()

    if update.callback_query.message:
        await update.callback_query.message.edit_reply_markup(
            reply_markup=fired_keyboard(paused, item_id, _holding(driver, item_id))
        )
    await update.callback_query.answer("⏸ Paused" if paused else "▶️ Resumed")


async def handle_prompt_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE, action: str, item_id: int
) -> None:
    """Dismiss, hold or release the on-screen prompt for a mirrored reminder."""
    if not update.callback_query:
        return

    driver: ReminderDriver = context.bot_data["driver"]
    presenter = driver.presenters.get("custom")

    if not isinstance(presenter, FloatingPresenter) or not presenter.is_showing(item_id):
        await update.callback_query.answer("Already closed")
        return

    if action == "dismiss":
        presenter.dismiss()
        answer = "✖ Dismissed"
    elif action == "hold":
        presenter.hold()
        answer = "📌 Kept open"
    else:
        presenter.release()
        answer = "🔓 Closing"

    if update.callback_query.message:
        await update.callback_query.message.edit_reply_markup(
            reply_markup=fired_keyboard(driver.paused, item_id, _holding(driver, item_id))
        )
    await update.callback_query.answer(answer)


def _holding(driver: ReminderDriver, item_id: int) -> bool:
    presenter = driver.presenters.get("custom")
    return (
        isinstance(presenter, FloatingPresenter)
        and presenter.is_showing(item_id)
        and presenter.holding
    )


async def handle_view_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE, view: str
) -> None:
    """Show the adhkar list or the settings as a new message."""
    if not update.callback_query:
        return

    repo: Repository = context.bot_data["repo"]
    driver: ReminderDriver = context.bot_data["driver"]

    if view == "list":
        text = format_item_list(await repo.load_items(), driver.last_fired)
    else:
        text = format_settings(await repo.load_settings())

    if update.callback_query.message:
        await update.callback_query.message.reply_html(text)
    await update.callback_query.answer()


async def handle_delete_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE, item_id: int
) -> None:
    """Handle the delete confirmation button."""
    if not update.callback_query:
        return

    repo: Repository = context.bot_data["repo"]
    driver: ReminderDriver = context.bot_data["driver"]

    item = await repo.get_item(item_id)
    if item is None or not await repo.delete_item(item_id):
        await update.callback_query.answer("Adhkar not found.")
        return

    await driver.on_items_changed()

    if update.callback_query.message:
        await update.callback_query.message.edit_text(
            f"🗑 <b>Deleted:</b> <s>{escape(item.text)}</s>", parse_mode="HTML"
        )
    await update.callback_query.answer("Deleted")


async def callback_router(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route callback queries to appropriate handlers."""
    if not update.callback_query:
        return

    query = update.callback_query
    data = query.data

    if not data:
        return

    if not update.effective_user or update.effective_user.id != Config.TELEGRAM_OWNER_ID:
        logger.warning(f"Ignoring button press from non-owner {update.effective_user}")
        await query.answer()
        return

    parts = data.split(":")

    if parts[0] == "pause" and len(parts) == 3 and parts[1] == "fired" and parts[2].isdigit():
        await handle_fired_pause_callback(update, context, int(parts[2]))

    elif parts[0] == "pause":
        await handle_pause_callback(update, context)

    elif (
        parts[0] == "prompt"
        and len(parts) == 3
        and parts[1] in ("dismiss", "hold", "release")
        and parts[2].isdigit()
    ):
        await handle_prompt_callback(update, context, parts[1], int(parts[2]))

    elif parts[0] == "view" and len(parts) == 2:
        await handle_view_callback(update, context, parts[1])

    elif parts[0] == "delete" and len(parts) == 2 and parts[1].isdigit():
        await handle_delete_callback(update, context, int(parts[1]))

    elif parts[0] == "cancel":
        if query.message:
            await query.message.delete()
        await query.answer("Cancelled")

    else:
        await query.answer("Unknown action")
