"""Tests for the character ledger: defaults, clamping and per-key serialization."""

import asyncio
import gc

import pytest

from scum_bot.core.ledger import KeyedLocks, Ledger
from scum_bot.db.models import ACTION_NAMES, CharacterRecord
from scum_bot.db.repositories import CharacterRepository
from scum_bot.errors import StorageError, UnknownAttribute

pytestmark = pytest.mark.asyncio


# region Defaults
@pytest.mark.parametrize(
    "channel_id, user_id",
    [
        ("123456789012345678", "876543210987654321"),
        ("", ""),
        ("канал", "игрок"),
        ("chan with spaces", "user'quote"),
    ],
    ids=["snowflakes", "empty", "unicode", "punctuation"],
)
async def test_unseen_character_reads_zero_for_every_action(ledger, channel_id, user_id):
    for name in ACTION_NAMES:
        assert await ledger.get_attribute(channel_id, user_id, name) == 0


async def test_show_unseen_character_does_not_create_it(ledger, repository):
    record = await ledger.show("chan", "user")

    assert record == CharacterRecord(channel_id="chan", user_id="user")
    assert await repository.count() == 0


async def test_first_adjust_creates_the_character(ledger, repository):
    assert await ledger.adjust_attribute("chan", "user", "consort", 2) == 2
    assert await repository.count() == 1
    assert (await ledger.show("chan", "user")).consort == 2


# endregion


# region Clamping
@pytest.mark.parametrize("start", range(0, 5))
@pytest.mark.parametrize("delta", [-10, -4, -1, 0, 1, 2, 4, 10])
async def test_adjust_clamps_to_rating_range(ledger, start, delta):
    await ledger.adjust_attribute("chan", "user", "hack", start)

    new_value = await ledger.adjust_attribute("chan", "user", "hack", delta)

    assert new_value == max(0, min(4, start + delta))
    assert await ledger.get_attribute("chan", "user", "hack") == new_value


async def test_repeated_increments_stay_at_ceiling(ledger):
    await ledger.adjust_attribute("chan", "user", "helm", 4)
    for _ in range(3):
        assert await ledger.adjust_attribute("chan", "user", "helm", 1) == 4


async def test_repeated_decrements_stay_at_floor(ledger):
    for _ in range(3):
        assert await ledger.adjust_attribute("chan", "user", "skulk", -1) == 0


async def test_adjust_only_touches_the_named_action(ledger):
    await ledger.adjust_attribute("chan", "user", "study", 3)

    record = await ledger.show("chan", "user")
    assert record.study == 3
    assert sum(record.ratings.values()) == 3


async def test_action_names_are_case_insensitive(ledger):
    assert await ledger.adjust_attribute("chan", "user", "Scrap", 2) == 2
    assert await ledger.get_attribute("chan", "user", " SCRAP ") == 2


# endregion


# region Errors
async def test_unknown_attribute_is_rejected_everywhere(ledger, repository):
    with pytest.raises(UnknownAttribute):
        await ledger.get_attribute("chan", "user", "luck")
    with pytest.raises(UnknownAttribute):
        await ledger.adjust_attribute("chan", "user", "luck", 1)
    assert await repository.count() == 0


async def test_failed_adjust_leaves_stored_value_unchanged(pool, ledger):
    await ledger.adjust_attribute("chan", "user", "rig", 2)
    async with pool.acquire() as conn:
        await conn.execute(
            """
            CREATE TRIGGER reject_updates BEFORE UPDATE ON characters
            BEGIN SELECT RAISE(ABORT, 'disk full'); END;
            """
        )
        await conn.commit()

    with pytest.raises(StorageError):
        await ledger.adjust_attribute("chan", "user", "rig", 1)

    assert await ledger.get_attribute("chan", "user", "rig") == 2


async def test_failed_adjust_releases_the_key(ledger, repository, monkeypatch):
    async def failing_save(record):
        raise StorageError()

    monkeypatch.setattr(repository, "save", failing_save)
    with pytest.raises(StorageError):
        await ledger.adjust_attribute("chan", "user", "sway", 1)

    assert await asyncio.wait_for(ledger.get_attribute("chan", "user", "sway"), timeout=1) == 0


# endregion


# region Concurrency
@pytest.mark.parametrize("n", [5, 10, 25])
async def test_concurrent_increments_lose_no_updates(ledger, n):
    results = await asyncio.gather(*(ledger.adjust_attribute("chan", "user", "hack", 1) for _ in range(n)))

    assert await ledger.get_attribute("chan", "user", "hack") == min(n, 4)
    assert sorted(results) == [min(i, 4) for i in range(1, n + 1)]


async def test_concurrent_increments_with_pooled_file_connections(file_pool):
    ledger = Ledger(CharacterRepository(file_pool))

    await asyncio.gather(*(ledger.adjust_attribute("chan", "user", "doctor", 1) for _ in range(8)))
    await asyncio.gather(*(ledger.adjust_attribute("chan", "user", "attune", 1) for _ in range(3)))

    record = await ledger.show("chan", "user")
    assert record.doctor == 4
    assert record.attune == 3


async def test_interleaved_increments_and_decrements_are_serialized(ledger):
    await ledger.adjust_attribute("chan", "user", "command", 2)
    deltas = [1, -1] * 10

    await asyncio.gather(*(ledger.adjust_attribute("chan", "user", "command", d) for d in deltas))

    assert await ledger.get_attribute("chan", "user", "command") == 2


async def test_held_key_does_not_block_other_keys(ledger):
    async with ledger._locks.hold(("chan-a", "user-x")):
        value = await asyncio.wait_for(
            ledger.adjust_attribute("chan-b", "user-y", "helm", 1),
            timeout=2,
        )
        reading = await asyncio.wait_for(ledger.get_attribute("chan-a", "user-y", "helm"), timeout=2)

    assert value == 1
    assert reading == 0


async def test_held_key_blocks_reads_of_the_same_key(ledger):
    async with ledger._locks.hold(("chan", "user")):
        task = asyncio.create_task(ledger.get_attribute("chan", "user", "helm"))
        await asyncio.sleep(0.05)
        assert not task.done()

    assert await asyncio.wait_for(task, timeout=2) == 0


async def test_many_keys_progress_concurrently(ledger):
    keys = [(f"chan-{i % 4}", f"user-{i}") for i in range(12)]

    await asyncio.wait_for(
        asyncio.gather(*(ledger.adjust_attribute(c, u, "rig", 1) for c, u in keys for _ in range(2))),
        timeout=5,
    )

    for channel_id, user_id in keys:
        assert await ledger.get_attribute(channel_id, user_id, "rig") == 2


# endregion


# region KeyedLocks
async def test_keyed_locks_reuse_lock_per_key():
    locks = KeyedLocks()
    first = locks.lock_for(("chan", "user"))

    assert locks.lock_for(("chan", "user")) is first
    assert locks.lock_for(("chan", "other")) is not first


async def test_keyed_locks_forget_idle_keys():
    locks = KeyedLocks()
    async with locks.hold(("chan", "user")):
        assert len(locks) == 1

    gc.collect()
    assert len(locks) == 0


# endregion
