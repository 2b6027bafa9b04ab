"""Async SQLite connection pool with schema bootstrap and versioning.

Wraps `aiosqlite` connections, initializes the characters schema, tracks the
schema version with ``PRAGMA user_version`` and hands out connections from a
bounded queue.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List, Optional

import aiosqlite

from scum_bot.errors import StorageError

CURRENT_SCHEMA_VERSION = 1
MEMORY_PATH = ":memory:"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS characters (
    channel_id TEXT NOT NULL,
    user_id TEXT NOT NULL,

    attune INTEGER NOT NULL DEFAULT 0,
    command INTEGER NOT NULL DEFAULT 0,
    consort INTEGER NOT NULL DEFAULT 0,
    doctor INTEGER NOT NULL DEFAULT 0,
    hack INTEGER NOT NULL DEFAULT 0,
    helm INTEGER NOT NULL DEFAULT 0,
    rig INTEGER NOT NULL DEFAULT 0,
    scramble INTEGER NOT NULL DEFAULT 0,
    scrap INTEGER NOT NULL DEFAULT 0,
    skulk INTEGER NOT NULL DEFAULT 0,
    study INTEGER NOT NULL DEFAULT 0,
    sway INTEGER NOT NULL DEFAULT 0,

    PRIMARY KEY (channel_id, user_id)
);
"""

logger = logging.getLogger(__name__)


class ConnectionPool:
    """A fixed-size pool of `aiosqlite` connections to one database file.

    Usage:
        pool = ConnectionPool("scum-bot.db")
        async with pool.acquire() as conn:
            await conn.execute(...)
            await conn.commit()
        await pool.close()

    ``":memory:"`` opens a new isolated database per connection, so an
    in-memory pool holds exactly one connection and every acquire waits for it.
    """

    def __init__(self, path: str, *, size: int = 5, timeout: float = 30.0) -> None:
        self.path = path
        self.size = 1 if path == MEMORY_PATH else size
        self.timeout = timeout
        self._queue: Optional[asyncio.Queue[aiosqlite.Connection]] = None
        self._connections: List[aiosqlite.Connection] = []
        self._init_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._queue is not None

    async def __aenter__(self) -> "ConnectionPool":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(
            self.path,
            timeout=self.timeout,
            cached_statements=128,
        )
        conn.row_factory = aiosqlite.Row
        return conn

    async def _initialize_schema(self, conn: aiosqlite.Connection) -> None:
        """Create the schema if needed and bring ``user_version`` up to date."""
        async with conn.execute("PRAGMA user_version;") as cursor:
            row = await cursor.fetchone()
        current_version = row[0] if row else 0

        if current_version == 0:
            logger.info("Applying initial schema to %s", self.path)
            await conn.executescript(SCHEMA_SQL)
            await conn.execute(f"PRAGMA user_version = {CURRENT_SCHEMA_VERSION};")
            await conn.commit()
            logger.info("Initial schema applied, version set to %d", CURRENT_SCHEMA_VERSION)
        elif current_version < CURRENT_SCHEMA_VERSION:
            logger.info(
                "Running migrations from version %d to %d",
                current_version,
                CURRENT_SCHEMA_VERSION,
            )
            await conn.executescript(SCHEMA_SQL)
            await conn.execute(f"PRAGMA user_version = {CURRENT_SCHEMA_VERSION};")
            await conn.commit()
        else:
            logger.info("Database schema is up-to-date (version %d)", current_version)

    async def open(self) -> None:
        """Open every connection and make sure the schema exists."""
        if self._queue is not None:
            return
        async with self._init_lock:
            if self._queue is not None:
                return

            if self.path != MEMORY_PATH:
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)

            queue: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=self.size)
            try:
                for i in range(self.size):
                    conn = await self._connect()
                    self._connections.append(conn)
                    if i == 0:
                        await self._initialize_schema(conn)
                    await queue.put(conn)
                    logger.debug("Opened connection %d/%d", i + 1, self.size)
            except Exception as e:
                logger.exception("Failed to initialize database %s: %s", self.path, e)
                await self._close_connections()
                raise

            self._queue = queue
            logger.info("Database connection pool initialized with size %d", self.size)

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a connection, returning it to the pool afterwards."""
        if self._queue is None:
            await self.open()
        queue = self._queue
        if queue is None:
            raise RuntimeError("Connection pool is not initialized")

        try:
            conn = await asyncio.wait_for(queue.get(), timeout=self.timeout)
            logger.debug("Acquired database connection from pool")
        except asyncio.TimeoutError:
            logger.error("Timed out waiting for database connection")
            raise StorageError("storage_timeout")

        # An in-memory connection cannot be recreated without losing its data.
        if self.path != MEMORY_PATH:
            try:
                conn = await self._validated(conn)
            except Exception:
                # Keep the slot; the next acquire retries the reconnect.
                queue.put_nowait(conn)
                raise

        start_time = time.monotonic()
        try:
            yield conn
        finally:
            elapsed = time.monotonic() - start_time
            logger.debug("Database connection held for %.3f seconds", elapsed)
            queue.put_nowait(conn)

    async def _validated(self, conn: aiosqlite.Connection) -> aiosqlite.Connection:
        try:
            async with conn.execute("SELECT 1;"):
                pass
            return conn
        except (aiosqlite.Error, ValueError) as e:
            logger.warning("Database connection is invalid, recreating new connection: %s", e)
            new_conn = await self._connect()
            self._connections = [c for c in self._connections if c is not conn]
            self._connections.append(new_conn)
            return new_conn

    async def _close_connections(self) -> None:
        while self._connections:
            conn = self._connections.pop()
            try:
                await conn.close()
            except Exception as exc:  # pragma: no cover - cleanup best effort
                logger.warning("Error closing DB connection: %s", exc)

    async def close(self) -> None:
        """Close all connections and reset the pool."""
        if self._queue is None:
            return
        await self._close_connections()
        self._queue = None
        logger.info("Database connection pool closed")
