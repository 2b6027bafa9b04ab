"""Wiring: build a ready-to-use command engine from settings."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from scum_bot.config import AppSettings
from scum_bot.core.commands import CommandEngine
from scum_bot.core.dice import build_rng
from scum_bot.core.ledger import Ledger
from scum_bot.db.connection import ConnectionPool
from scum_bot.db.repositories import CharacterRepository


@asynccontextmanager
async def open_engine(settings: AppSettings) -> AsyncIterator[CommandEngine]:
    """Open the database pool, yield an engine over it and close the pool on exit."""
    pool = ConnectionPool(
        settings.db.path,
        size=settings.db.pool_size,
        timeout=settings.db.pool_timeout,
    )
    async with pool:
        ledger = Ledger(CharacterRepository(pool))
        yield CommandEngine(ledger, rng=build_rng(seed=settings.dice.seed))
