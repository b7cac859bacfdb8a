"""Database migration runner."""

import logging
from pathlib import Path

import aiosqlite

from zikrminder.utils.constants import DEFAULT_ADHKAR, DEFAULT_INTERVAL_MINUTES
from zikrminder.utils.time_utils import utc_now

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


async def init_database(db: aiosqlite.Connection) -> None:
    """Create the schema and seed the default adhkar."""
    schema_path = Path(__file__).parent / "schema.sql"

    with open(schema_path) as f:
        schema_sql = f.read()

    await db.executescript(schema_sql)

    created_at = utc_now().isoformat()
    await db.executemany(
        """
        INSERT INTO adhkar (text, category, repeats, interval_minutes, delay_ms, created_at)
        VALUES (?, ?, ?, ?, 0, ?)
        """,
        [
            (entry.text, entry.category, entry.repeats, DEFAULT_INTERVAL_MINUTES, created_at)
            for entry in DEFAULT_ADHKAR
        ],
    )
    logger.info(f"Seeded {len(DEFAULT_ADHKAR)} default adhkar")


# version reached -> migration that produces it
MIGRATIONS = {
    1: init_database,
}


async def run_migrations(db_path: Path) -> None:
    """Run any pending migrations.

    The schema version lives in PRAGMA user_version, so seeding happens only
    once: a user who deletes every item does not get the defaults back.
    """
    async with aiosqlite.connect(db_path) as db:
        async with db.execute("PRAGMA user_version") as cursor:
            row = await cursor.fetchone()
            version = row[0] if row else 0

        for target in sorted(MIGRATIONS):
            if target <= version:
                continue
            await MIGRATIONS[target](db)
            await db.execute(f"PRAGMA user_version = {target}")
            await db.commit()
            logger.info(f"Database at {db_path} migrated to version {target}")
