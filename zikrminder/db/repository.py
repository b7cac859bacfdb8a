"""Database repository - item store and settings store."""

import json
import logging
from contextlib import contextmanager
from dataclasses import asdict, fields
from datetime import datetime
from pathlib import Path
from typing import Iterator, List

import aiosqlite

from zikrminder.db.models import ReminderItem, Settings
from zikrminder.errors import StoreError
from zikrminder.utils.constants import (
    LANGUAGES,
    NOTIFICATION_TYPES,
    SOUND_CHOICES,
    THEMES,
)
from zikrminder.utils.time_utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

SETTINGS_FIELDS = tuple(f.name for f in fields(Settings))


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    """Translate sqlite failures into StoreError."""
    try:
        yield
    except aiosqlite.Error as e:
        logger.error(f"Store error while trying to {action}: {e}")
        raise StoreError(f"Failed to {action}: {e}") from e


def coerce_settings(raw: dict) -> Settings:
    """Build Settings from stored values, dropping unknown keys and bad values."""
    defaults = Settings()
    values = {key: raw[key] for key in SETTINGS_FIELDS if key in raw}

    try:
        volume = float(values.get("volume", defaults.volume))
    except (TypeError, ValueError):
        volume = defaults.volume
    values["volume"] = min(max(volume, 0.0), 1.0)

    if values.get("theme") not in THEMES:
        values["theme"] = defaults.theme
    if values.get("language") not in LANGUAGES:
        values["language"] = defaults.language
    if values.get("notification_sound") not in SOUND_CHOICES:
        values["notification_sound"] = defaults.notification_sound
    if values.get("notification_type") not in NOTIFICATION_TYPES:
        values["notification_type"] = defaults.notification_type
    values["auto_start"] = bool(values.get("auto_start", defaults.auto_start))

    return Settings(**values)


class Repository:
    """Database access layer for adhkar and settings."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._db: aiosqlite.Connection | None = None
        self._last_saved_settings: dict | None = None

    async def connect(self) -> None:
        """Open database connection."""
        with _store_errors("connect"):
            self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        logger.info(f"Connected to database at {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Database connection closed")

    @property
    def db(self) -> aiosqlite.Connection:
        """Get the database connection."""
        if self._db is None:
            raise StoreError("Database not connected")
        return self._db

    # Item store

    async def load_items(self) -> List[ReminderItem]:
        """Load every item in stable (id) order."""
        with _store_errors("load adhkar"):
            async with self.db.execute("SELECT * FROM adhkar ORDER BY id") as cursor:
                rows = await cursor.fetchall()
                return [self._row_to_item(row) for row in rows]

    async def get_item(self, item_id: int) -> ReminderItem | None:
        """Get an item by ID."""
        with _store_errors("load adhkar"):
            async with self.db.execute(
                "SELECT * FROM adhkar WHERE id = ?", (item_id,)
            ) as cursor:
                row = await cursor.fetchone()
                if row:
                    return self._row_to_item(row)
                return None

    async def save_items(self, items: List[ReminderItem]) -> None:
        """Replace the stored item list with the given one."""
        with _store_errors("save adhkar"):
            try:
                await self.db.execute("DELETE FROM adhkar")
                await self.db.executemany(
                    """
                    INSERT INTO adhkar (
                        id, text, category, repeats, interval_minutes, delay_ms, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    [self._item_params(item) for item in items],
                )
                await self.db.commit()
            except aiosqlite.Error:
                await self.db.rollback()
                raise
        logger.info(f"Saved {len(items)} adhkar")

    async def add_item(
        self,
        text: str,
        interval_minutes: float,
        delay_ms: int = 0,
        repeats: int = 1,
        category: str = "general",
        now: datetime | None = None,
    ) -> ReminderItem:
        """Create a new item scheduled from now (plus its delay)."""
        item = ReminderItem(
            text=text,
            created_at=now or utc_now(),
            interval_minutes=interval_minutes,
            delay_ms=delay_ms,
            repeats=repeats,
            category=category,
        )
        with _store_errors("add adhkar"):
            async with self.db.execute(
                """
                INSERT INTO adhkar (
                    id, text, category, repeats, interval_minutes, delay_ms, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                RETURNING *
                """,
                self._item_params(item),
            ) as cursor:
                row = await cursor.fetchone()
            await self.db.commit()

        created = self._row_to_item(row)
        logger.info(f"Created adhkar {created.id}")
        return created

    async def edit_item(
        self, item_id: int, now: datetime | None = None, **changes
    ) -> ReminderItem | None:
        """Apply changes to an item and restart its schedule at now."""
        item = await self.get_item(item_id)
        if item is None:
            return None

        updated = item.edited(now or utc_now(), **changes)
        with _store_errors("update adhkar"):
            await self.db.execute(
                """
                UPDATE adhkar SET
                    text = ?,
                    category = ?,
                    repeats = ?,
                    interval_minutes = ?,
                    delay_ms = ?,
                    created_at = ?
                WHERE id = ?
                """,
                (
                    updated.text,
                    updated.category,
                    updated.repeats,
                    updated.interval_minutes,
                    updated.delay_ms,
                    updated.created_at.isoformat(),
                    item_id,
                ),
            )
            await self.db.commit()

        logger.info(f"Updated adhkar {item_id}, schedule restarted")
        return updated

    async def delete_item(self, item_id: int) -> bool:
        """Delete an item. Returns False if it did not exist."""
        with _store_errors("delete adhkar"):
            cursor = await self.db.execute("DELETE FROM adhkar WHERE id = ?", (item_id,))
            deleted = cursor.rowcount > 0
            await cursor.close()
            await self.db.commit()
        return deleted

    # Settings store

    async def load_settings(self) -> Settings:
        """Load settings, filling defaults for anything missing."""
        with _store_errors("load settings"):
            async with self.db.execute("SELECT key, value FROM settings") as cursor:
                rows = await cursor.fetchall()

        raw = {}
        for row in rows:
            try:
                raw[row["key"]] = json.loads(row["value"])
            except json.JSONDecodeError:
                logger.warning(f"Ignoring unreadable setting {row['key']!r}")

        settings = coerce_settings(raw)

        # Older versions stored the custom sound inline as a data URL
        if settings.custom_sound_path and settings.custom_sound_path.startswith("data:"):
            logger.info("Migrating custom_sound_path away from inline data URL")
            settings.custom_sound_path = None
            await self.save_settings(settings)

        self._last_saved_settings = asdict(settings)
        return settings

    async def save_settings(self, settings: Settings) -> bool:
        """Persist settings. Returns False when identical to the last save."""
        cleaned = asdict(coerce_settings(asdict(settings)))
        if cleaned == self._last_saved_settings:
            logger.debug("Skipping duplicate settings save")
            return False

        with _store_errors("save settings"):
            await self.db.executemany(
                """
                INSERT INTO settings (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                [(key, json.dumps(value)) for key, value in cleaned.items()],
            )
            await self.db.commit()

        self._last_saved_settings = cleaned
        logger.info(f"Saved settings: {cleaned}")
        return True

    # Helper methods

    def _item_params(self, item: ReminderItem) -> tuple:
        return (
            item.id,
            item.text,
            item.category,
            item.repeats,
            item.interval_minutes,
            item.delay_ms,
            ensure_utc(item.created_at).isoformat(),
        )

    def _row_to_item(self, row: aiosqlite.Row) -> ReminderItem:
        """Convert a database row to a ReminderItem."""
        return ReminderItem(
            id=row["id"],
            text=row["text"],
            category=row["category"],
            repeats=row["repeats"],
            interval_minutes=row["interval_minutes"],
            delay_ms=row["delay_ms"],
            created_at=ensure_utc(datetime.fromisoformat(row["created_at"])),
        )
