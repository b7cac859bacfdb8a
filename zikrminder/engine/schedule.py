"""Schedule evaluation - decides whether an item is due at a given instant.

Occurrences of an item fall at ``created_at + delay + k * interval`` for
k >= 0. The driver samples at a coarse cadence, so an occurrence is
recognised when "now" lands within one tick after a boundary and that
boundary has not been fired yet.
"""

import logging
import math
from datetime import datetime, timedelta

from zikrminder.db.models import ReminderItem
from zikrminder.utils.constants import DEFAULT_TICK_MS, MIN_INTERVAL_MINUTES
from zikrminder.utils.time_utils import to_ms

logger = logging.getLogger(__name__)


def interval_ms(item: ReminderItem) -> int:
    """Repeat interval in milliseconds, clamped to the minimum when invalid."""
    minutes = item.interval_minutes
    try:
        valid = minutes is not None and math.isfinite(minutes) and minutes > 0
    except TypeError:
        valid = False

    if not valid:
        logger.warning(
            f"Invalid interval {minutes!r} for item {item.id}, "
            f"using {MIN_INTERVAL_MINUTES} minute(s)"
        )
        minutes = MIN_INTERVAL_MINUTES

    return max(int(round(minutes * 60000)), 1)


def delay_ms(item: ReminderItem) -> int:
    """Start delay in milliseconds; negative delays count as zero."""
    return max(int(item.delay_ms or 0), 0)


def scheduled_start(item: ReminderItem) -> datetime:
    """The first eligible occurrence of an item."""
    return item.created_at + timedelta(milliseconds=delay_ms(item))


def is_due(
    item: ReminderItem,
    now: datetime,
    last_fired_at: datetime | None,
    tolerance_ms: int = DEFAULT_TICK_MS,
) -> bool:
    """Check if an item should fire at now.

    Args:
        item: The item to evaluate
        now: Current time (UTC)
        last_fired_at: When this item was last presented, None if never
        tolerance_ms: Width of the due window, the tick cadence

    Returns:
        True if now falls in a due window whose boundary has not fired yet
    """
    start = scheduled_start(item)

    # Delay not elapsed yet; also covers now < created_at
    if now < start:
        return False

    period = interval_ms(item)
    _, cycle = divmod(now - start, timedelta(milliseconds=period))

    if to_ms(cycle) >= tolerance_ms:
        return False

    if last_fired_at is None:
        return True

    boundary = now - cycle
    return last_fired_at < boundary or to_ms(now - last_fired_at) >= period


def next_occurrence(item: ReminderItem, now: datetime) -> datetime:
    """The next occurrence at or after now."""
    start = scheduled_start(item)
    if now <= start:
        return start

    period = timedelta(milliseconds=interval_ms(item))
    cycles, remainder = divmod(now - start, period)
    if remainder:
        cycles += 1
    return start + cycles * period
