"""SQLite repository implementations using aiosqlite."""

from __future__ import annotations

import logging

import aiosqlite
from pydantic import ValidationError

from scum_bot.errors import StorageError

from .connection import ConnectionPool
from .models import ACTION_NAMES, CharacterRecord

logger = logging.getLogger(__name__)

_COLUMNS = ", ".join(ACTION_NAMES)
_PLACEHOLDERS = ", ".join("?" for _ in ACTION_NAMES)
_UPDATES = ",\n    ".join(f"{name} = excluded.{name}" for name in ACTION_NAMES)

SELECT_CHARACTER_SQL = f"""
SELECT channel_id, user_id, {_COLUMNS}
FROM characters
WHERE channel_id = ? AND user_id = ?
"""

UPSERT_CHARACTER_SQL = f"""
INSERT INTO characters (channel_id, user_id, {_COLUMNS})
VALUES (?, ?, {_PLACEHOLDERS})
ON CONFLICT (channel_id, user_id) DO UPDATE SET
    {_UPDATES}
"""


class CharacterRepository:
    """SQLite implementation of the character attribute store."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    async def load(self, channel_id: str, user_id: str) -> CharacterRecord:
        """Return the stored character, or an all-zero one if none exists yet."""
        try:
            async with self._pool.acquire() as conn:
                async with conn.execute(SELECT_CHARACTER_SQL, (channel_id, user_id)) as cursor:
                    row = await cursor.fetchone()
        except (aiosqlite.Error, OSError) as e:
            logger.exception("Failed to load character channel=%s user=%s: %s", channel_id, user_id, e)
            raise StorageError() from e

        if row is None:
            return CharacterRecord(channel_id=channel_id, user_id=user_id)
        try:
            return CharacterRecord(**dict(row))
        except ValidationError as e:
            logger.error("Corrupt character row channel=%s user=%s: %s", channel_id, user_id, e)
            raise StorageError("storage_corrupt_record") from e

    async def save(self, record: CharacterRecord) -> None:
        """Upsert the full record in one statement; all fields or none are written."""
        params = (record.channel_id, record.user_id, *(record.rating(name) for name in ACTION_NAMES))
        try:
            async with self._pool.acquire() as conn:
                try:
                    await conn.execute(UPSERT_CHARACTER_SQL, params)
                    await conn.commit()
                except aiosqlite.Error:
                    await conn.rollback()
                    raise
        except (aiosqlite.Error, OSError) as e:
            logger.exception(
                "Failed to save character channel=%s user=%s: %s",
                record.channel_id,
                record.user_id,
                e,
            )
            raise StorageError() from e

    async def count(self) -> int:
        """Number of stored characters."""
        try:
            async with self._pool.acquire() as conn:
                async with conn.execute("SELECT COUNT(*) FROM characters") as cursor:
                    row = await cursor.fetchone()
                    return row[0] if row else 0
        except (aiosqlite.Error, OSError) as e:
            logger.exception("Failed to count characters: %s", e)
            raise StorageError() from e
