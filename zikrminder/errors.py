"""Exception types raised by zikrminder."""


class ZikrminderError(Exception):
    """Base class for all zikrminder errors."""


class StoreError(ZikrminderError):
    """Loading or saving items/settings failed.

    Recoverable: the driver keeps running on its last known item set and
    retries on the next explicit mutation.
    """


class SchedulerStartError(ZikrminderError):
    """The periodic tick could not be armed."""


class SoundPlaybackError(ZikrminderError):
    """A sound backend failed to play a file."""
