"""Redis client shared by the snap ledger and the merchant directory."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Protocol, Union

import redis.asyncio as redis
from redis.exceptions import RedisError


class HasDatabaseSettings(Protocol):
    database_url: str


class DatabaseClient:
    """Owns the process-wide Redis pool.

    Snaps, claims and merchants all live in one logical database selected by
    `database_url` (e.g. `redis://host:6379/0`). Responses are decoded to
    `str` because every stored value is JSON text.
    """

    def __init__(self, settings: HasDatabaseSettings):
        self.settings = settings
        self._redis: Optional[redis.Redis] = None

    def initialize_database(self) -> None:
        self._redis = redis.from_url(self.settings.database_url, decode_responses=True)

    @asynccontextmanager
    async def get_connection(self) -> AsyncGenerator[redis.Redis, None]:
        """Yield the pooled client, creating the pool on first use."""
        if self._redis is None:
            self.initialize_database()
        conn = self._redis
        if conn is None:
            raise RuntimeError("Redis pool failed to initialize")
        yield conn

    async def ping(self) -> bool:
        """Report whether Redis answers; used by the health endpoint."""
        try:
            async with self.get_connection() as conn:
                return bool(await conn.ping())
        except (RedisError, OSError):
            return False

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


_db_client: Union[DatabaseClient, None] = None


def get_database_client(settings: HasDatabaseSettings) -> DatabaseClient:
    global _db_client
    if _db_client is None:
        _db_client = DatabaseClient(settings)
    return _db_client
