"""Global error handler for the control bot."""

import logging
import traceback

from telegram import Update
from telegram.ext import ContextTypes

from zikrminder.errors import StoreError

logger = logging.getLogger(__name__)


def error_message_for(error: object) -> str:
    """Pick the reply shown to the owner for an unhandled error."""
    if isinstance(error, StoreError):
        return (
            "💾 Could not read or write your adhkar.\n\n"
            "Reminders keep running with the last loaded list. Please try again."
        )
    if "Bad Request" in str(error):
        return (
            "❌ Invalid request.\n\n"
            "Please check your command syntax and try again. Use /help for examples."
        )
    if "Timeout" in str(error):
        return "⏱️ Request timed out.\n\nPlease try again in a moment."
    if "Network" in str(error):
        return "🌐 Network error.\n\nPlease check your connection and try again."

    return (
        "😅 Oops! Something went wrong.\n\n"
        "The error has been logged. Please try again or use /help for assistance."
    )


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle errors in the bot."""
    logger.error("Exception while handling an update:", exc_info=context.error)

    if context.error is not None:
        tb_string = "".join(
            traceback.format_exception(None, context.error, context.error.__traceback__)
        )
        logger.debug(f"Traceback:\n{tb_string}")

    if isinstance(update, Update) and update.effective_message:
        try:
            await update.effective_message.reply_text(error_message_for(context.error))
        except Exception as e:
            logger.error(f"Failed to send error message to owner: {e}")
