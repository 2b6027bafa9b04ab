"""
This file contains shared fixtures for the test suite.
"""

import os
from typing import Iterable, List, Tuple

import pytest
import pytest_asyncio

# Set env vars before any application modules are imported
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("PYTHONIOENCODING", "utf-8")

from scum_bot.core.commands import CommandEngine
from scum_bot.core.dice import build_rng
from scum_bot.core.ledger import Ledger
from scum_bot.db.connection import ConnectionPool
from scum_bot.db.repositories import CharacterRepository


class SequenceRng:
    """Entropy source that replays a fixed list of die faces."""

    def __init__(self, faces: Iterable[int]) -> None:
        self._faces: List[int] = list(faces)
        self.calls: List[Tuple[int, int]] = []

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        if not self._faces:
            raise AssertionError("SequenceRng ran out of faces")
        return self._faces.pop(0)

    @property
    def remaining(self) -> int:
        return len(self._faces)


@pytest.fixture
def sequence_rng():
    """Factory for deterministic entropy sources."""
    return SequenceRng


@pytest_asyncio.fixture
async def pool():
    """In-memory database shared by one test."""
    db_pool = ConnectionPool(":memory:", timeout=5.0)
    await db_pool.open()
    yield db_pool
    await db_pool.close()


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "data" / "scum-bot.db")


@pytest_asyncio.fixture
async def file_pool(db_path):
    """File-backed database with several pooled connections."""
    db_pool = ConnectionPool(db_path, size=5, timeout=5.0)
    await db_pool.open()
    yield db_pool
    await db_pool.close()


@pytest.fixture
def repository(pool):
    return CharacterRepository(pool)


@pytest.fixture
def ledger(repository):
    return Ledger(repository)


@pytest.fixture
def engine(ledger):
    return CommandEngine(ledger, rng=build_rng(seed=1337))
