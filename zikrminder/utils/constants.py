"""Constants and default values."""

from dataclasses import dataclass


@dataclass
class DefaultAdhkar:
    """Seed entry written on first database initialization."""

    text: str
    repeats: int
    category: str = "general"


# Seeded once into a fresh database
DEFAULT_ADHKAR = [
    DefaultAdhkar("Subhan Allah", 33),
    DefaultAdhkar("Alhamdulillah", 33),
    DefaultAdhkar("Allahu Akbar", 34),
    DefaultAdhkar("La ilaha illallah", 1),
    DefaultAdhkar("Astaghfirullah", 10),
]

# Scheduling
DEFAULT_INTERVAL_MINUTES = 5
MIN_INTERVAL_MINUTES = 1
DEFAULT_TICK_MS = 1000
INFINITE_REPEATS = -1  # Sentinel for "repeat forever"

# Limits
MAX_TEXT_LENGTH = 500
MAX_REPEATS = 10000
MAX_PENDING_PROMPTS = 16
MAX_SOUND_SECONDS = 60.0  # Playback longer than this is cut off

# Presentation
APP_TITLE = "Zikr Reminder"
NOTIFICATION_TYPES = ("custom", "system")
THEMES = ("system", "dark", "light")
LANGUAGES = ("en", "ar")

# Sound selections and the bundled file each one maps to
SOUND_FILES = {
    "default": "notification-default.wav",
    "bell": "notification-bell.wav",
    "chime": "notification-chime.wav",
    "none": None,
}
SOUND_CHOICES = ("default", "bell", "chime", "custom", "none")

DEFAULT_VOLUME = 0.8
