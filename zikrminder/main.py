"""Main entry point for Zikrminder."""

import asyncio
import logging
import signal
import sys
from functools import partial

from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    MessageHandler,
    filters,
)

from zikrminder.bot.callbacks import callback_router
from zikrminder.bot.formatters import format_fired_message
from zikrminder.bot.handlers import (
    add_command,
    delete_command,
    edit_command,
    handle_audio_upload,
    help_command,
    language_command,
    list_command,
    mode_command,
    pause_command,
    repeats_command,
    resume_command,
    settings_command,
    sound_command,
    start_command,
    status_command,
    theme_command,
    volume_command,
)
from zikrminder.bot.keyboards import fired_keyboard
from zikrminder.config import Config
from zikrminder.db.migrations import run_migrations
from zikrminder.db.models import FiredReminder
from zikrminder.db.repository import Repository
from zikrminder.engine.driver import ReminderDriver
from zikrminder.errors import StoreError
from zikrminder.presentation.floating import FloatingPresenter
from zikrminder.presentation.sound import resolve_sound, select_sound_player
from zikrminder.presentation.surface import ConsoleSurface
from zikrminder.presentation.system import SystemPresenter
from zikrminder.presentation.tones import ensure_builtin_sounds
from zikrminder.utils.error_handler import error_handler

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)


def build_driver(repo: Repository) -> ReminderDriver:
    """Wire presenters, the sound backend and the store into a driver."""
    player = select_sound_player(Config.DATA_DIR)
    presenters = {
        "custom": FloatingPresenter(
            ConsoleSurface(),
            player,
            dismiss_delay=Config.DISMISS_DELAY,
            fallback_timeout=Config.DISPLAY_FALLBACK_TIMEOUT,
            max_sound_duration=Config.SOUND_MAX_DURATION,
        ),
        "system": SystemPresenter(player, max_sound_duration=Config.SOUND_MAX_DURATION),
    }
    return ReminderDriver(
        item_store=repo,
        settings_store=repo,
        presenters=presenters,
        sound_resolver=partial(
            resolve_sound,
            sounds_dir=Config.SOUNDS_DIR,
            custom_sounds_dir=Config.CUSTOM_SOUNDS_DIR,
        ),
        tick_ms=Config.tick_ms(),
    )


async def open_store() -> Repository:
    """Prepare sounds and the database, then connect the repository."""
    ensure_builtin_sounds(Config.SOUNDS_DIR)

    await run_migrations(Config.DATABASE_PATH)

    repo = Repository(Config.DATABASE_PATH)
    await repo.connect()
    return repo


async def start_driver(driver: ReminderDriver) -> None:
    try:
        await driver.start()
    except StoreError as e:
        # The tick is armed regardless; it will pick items up on the next restart
        logger.error(f"Started without stored adhkar: {e}")


# Standalone mode


async def run_standalone() -> None:
    """Run the driver until SIGINT/SIGTERM. SIGUSR1 toggles pause."""
    repo = await open_store()
    driver = build_driver(repo)
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            pass
    if hasattr(signal, "SIGUSR1"):
        try:
            loop.add_signal_handler(signal.SIGUSR1, driver.toggle_pause)
        except (NotImplementedError, RuntimeError):
            pass

    await start_driver(driver)
    logger.info("Zikrminder running (no control bot configured)")

    try:
        await stop_event.wait()
    finally:
        driver.stop()
        await repo.close()
        logger.info("Zikrminder shut down")


# Control bot mode


async def post_init(application: Application) -> None:
    """Initialize the store and driver after the application is created."""
    repo = await open_store()
    application.bot_data["repo"] = repo

    driver = build_driver(repo)
    application.bot_data["driver"] = driver

    async def mirror_reminder(event: FiredReminder) -> None:
        await application.bot.send_message(
            chat_id=Config.TELEGRAM_OWNER_ID,
            text=format_fired_message(event),
            parse_mode="HTML",
            reply_markup=fired_keyboard(driver.paused, event.item_id),
            disable_notification=True,
        )

    async def announce_pause(paused: bool) -> None:
        await application.bot.send_message(
            chat_id=Config.TELEGRAM_OWNER_ID,
            text="⏸ Reminders paused." if paused else "▶️ Reminders resumed.",
            disable_notification=True,
        )

    driver.add_listener(mirror_reminder)
    driver.add_pause_listener(announce_pause)

    await start_driver(driver)
    logger.info("Zikrminder initialized successfully")


async def post_shutdown(application: Application) -> None:
    """Cleanup resources on shutdown."""
    driver: ReminderDriver = application.bot_data.get("driver")
    if driver:
        driver.stop()

    repo: Repository = application.bot_data.get("repo")
    if repo:
        await repo.close()

    logger.info("Zikrminder shut down")


def build_application() -> Application:
    application = (
        Application.builder()
        .token(Config.TELEGRAM_BOT_TOKEN)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    owner = filters.User(user_id=Config.TELEGRAM_OWNER_ID)

    commands = {
        "start": start_command,
        "help": help_command,
        "list": list_command,
        "add": add_command,
        "edit": edit_command,
        "delete": delete_command,
        "repeats": repeats_command,
        "pause": pause_command,
        "resume": resume_command,
        "status": status_command,
        "settings": settings_command,
        "sound": sound_command,
        "mode": mode_command,
        "volume": volume_command,
        "theme": theme_command,
        "language": language_command,
    }
    for name, callback in commands.items():
        application.add_handler(CommandHandler(name, callback, filters=owner))

    # Custom sound upload
    application.add_handler(
        MessageHandler(
            owner & (filters.AUDIO | filters.VOICE | filters.Document.AUDIO),
            handle_audio_upload,
        )
    )

    # Callback queries (buttons)
    application.add_handler(CallbackQueryHandler(callback_router))

    # Error handler
    application.add_error_handler(error_handler)
    return application


def main() -> None:
    """Start Zikrminder."""
    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    if not Config.bot_enabled():
        try:
            asyncio.run(run_standalone())
        except KeyboardInterrupt:
            pass
        return

    application = build_application()
    logger.info("Starting Zikrminder with control bot...")
    application.run_polling(allowed_updates=["message", "callback_query"])


if __name__ == "__main__":
    main()
