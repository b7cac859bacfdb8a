"""Configuration management from environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def _data_dir() -> Path:
    return Path(os.getenv("DATA_DIR", "./data"))


class Config:
    """Application configuration loaded from environment variables."""

    # Storage
    DATA_DIR: Path = _data_dir()
    DATABASE_PATH: Path = Path(os.getenv("DATABASE_PATH", str(_data_dir() / "zikrminder.db")))
    SOUNDS_DIR: Path = Path(os.getenv("SOUNDS_DIR", str(_data_dir() / "sounds")))
    CUSTOM_SOUNDS_DIR: Path = Path(
        os.getenv("CUSTOM_SOUNDS_DIR", str(_data_dir() / "custom-sounds"))
    )

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Engine
    TICK_INTERVAL: float = float(os.getenv("TICK_INTERVAL", "1.0"))

    # Floating display
    DISMISS_DELAY: float = float(os.getenv("DISMISS_DELAY", "1.0"))
    DISPLAY_FALLBACK_TIMEOUT: float = float(os.getenv("DISPLAY_FALLBACK_TIMEOUT", "4.0"))
    SOUND_MAX_DURATION: float = float(os.getenv("SOUND_MAX_DURATION", "60.0"))

    # Telegram control panel (optional)
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    TELEGRAM_OWNER_ID: int = int(os.getenv("TELEGRAM_OWNER_ID", "0") or "0")

    @classmethod
    def tick_ms(cls) -> int:
        """Tick cadence in milliseconds, also the due-window tolerance."""
        return int(round(cls.TICK_INTERVAL * 1000))

    @classmethod
    def bot_enabled(cls) -> bool:
        return bool(cls.TELEGRAM_BOT_TOKEN)

    @classmethod
    def validate(cls) -> None:
        """Validate configuration."""
        if cls.tick_ms() <= 0:
            raise ValueError("TICK_INTERVAL must be at least one millisecond")

        if cls.DISMISS_DELAY < 0 or cls.DISPLAY_FALLBACK_TIMEOUT <= 0:
            raise ValueError("DISMISS_DELAY and DISPLAY_FALLBACK_TIMEOUT must be positive")

        if cls.SOUND_MAX_DURATION <= 0:
            raise ValueError("SOUND_MAX_DURATION must be positive")

        if cls.LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown LOG_LEVEL: {cls.LOG_LEVEL}")

        if cls.TELEGRAM_BOT_TOKEN and not cls.TELEGRAM_OWNER_ID:
            raise ValueError("TELEGRAM_OWNER_ID required when TELEGRAM_BOT_TOKEN is set")

        # Ensure storage directories exist
        cls.DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
        cls.SOUNDS_DIR.mkdir(parents=True, exist_ok=True)
        cls.CUSTOM_SOUNDS_DIR.mkdir(parents=True, exist_ok=True)
