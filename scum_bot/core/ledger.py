"""Character ledger: bounded, per-character serialized access to action ratings."""

from __future__ import annotations

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Tuple

from scum_bot.db.models import CharacterRecord, clamp_rating
from scum_bot.db.repositories import CharacterRepository
from scum_bot.utils.validators import validate_action_name

logger = logging.getLogger(__name__)

CharacterKey = Tuple[str, str]


class KeyedLocks:
    """One ``asyncio.Lock`` per character key, created on first use.

    Locks live in a weak-value mapping: a lock stays registered while any
    task holds or waits on it and is dropped once the key goes idle.

    The locks are ``asyncio`` primitives, so one instance (and the ``Ledger``
    that owns it) must only be used from a single event loop. Threaded callers
    submit coroutines to that loop with ``asyncio.run_coroutine_threadsafe``.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[CharacterKey, asyncio.Lock]" = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def lock_for(self, key: CharacterKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, key: CharacterKey) -> AsyncIterator[None]:
        lock = self.lock_for(key)
        async with lock:
            yield


class Ledger:
    """The only writer of character ratings.

    Every read and adjust on a ``(channel_id, user_id)`` pair runs under that
    pair's lock, so operations on one character are totally ordered while
    different characters proceed independently.
    """

    def __init__(self, repository: CharacterRepository) -> None:
        self._repository = repository
        self._locks = KeyedLocks()

    async def get_attribute(self, channel_id: str, user_id: str, attribute_name: str) -> int:
        """Current rating of *attribute_name*, 0 for a character never seen before."""
        action = validate_action_name(attribute_name)
        async with self._locks.hold((channel_id, user_id)):
            record = await self._repository.load(channel_id, user_id)
        return record.rating(action)

    async def adjust_attribute(self, channel_id: str, user_id: str, attribute_name: str, delta: int) -> int:
        """Add *delta* to a rating, clamped to the rating range, and return the new value.

        Raises ``StorageError`` if the write fails, in which case nothing was stored.
        """
        action = validate_action_name(attribute_name)
        async with self._locks.hold((channel_id, user_id)):
            record = await self._repository.load(channel_id, user_id)
            current = record.rating(action)
            new_value = clamp_rating(current + delta)
            await self._repository.save(record.with_rating(action, new_value))

        logger.info(
            "Adjusted rating channel=%s user=%s action=%s delta=%d %d->%d",
            channel_id,
            user_id,
            action,
            delta,
            current,
            new_value,
        )
        return new_value

    async def show(self, channel_id: str, user_id: str) -> CharacterRecord:
        """Snapshot of all twelve ratings."""
        async with self._locks.hold((channel_id, user_id)):
            return await self._repository.load(channel_id, user_id)
