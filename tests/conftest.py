"""Shared pytest fixtures for AxonPay tests."""

from __future__ import annotations

import os
import random
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from axonpay.application.snap.use_cases.snap_ledger import SnapLedger
from axonpay.infrastructure.database import DatabaseClient
from axonpay.infrastructure.merchant.merchant_directory_impl import (
    MerchantDirectoryImpl,
)
from axonpay.infrastructure.scripts import register_scripts
from axonpay.infrastructure.snap.snap_repository_impl import SnapRepositoryImpl
from axonpay.infrastructure.storage import RedisKeyValueStore
from tests.fixtures import FakeTransferClient, InMemoryKeyValueStore


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add command-line options for race condition tests."""
    parser.addoption(
        "--race-iterations",
        type=int,
        default=50,
        help="Number of iterations to run for Redis race tests (default: 50)",
    )


@pytest_asyncio.fixture
async def memory_store() -> AsyncGenerator[InMemoryKeyValueStore, None]:
    """In-memory store with every script registered; reads yield to the loop."""
    store = InMemoryKeyValueStore(yield_on_read=True)
    await register_scripts(store)
    yield store
    store.clear()


@pytest.fixture
def snap_repository(memory_store: InMemoryKeyValueStore) -> SnapRepositoryImpl:
    return SnapRepositoryImpl(memory_store)


@pytest.fixture
def merchant_directory(memory_store: InMemoryKeyValueStore) -> MerchantDirectoryImpl:
    return MerchantDirectoryImpl(memory_store)


@pytest.fixture
def transfer_client() -> FakeTransferClient:
    return FakeTransferClient()


@pytest.fixture
def ledger(
    snap_repository: SnapRepositoryImpl, transfer_client: FakeTransferClient
) -> SnapLedger:
    return SnapLedger(
        snap_repository, transfer_client, max_attempts=64, rng=random.Random(7)
    )


class TestDatabaseSettings:
    """Test settings for Redis connection."""

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url


@pytest_asyncio.fixture
async def redis_db_client() -> AsyncGenerator[DatabaseClient, None]:
    """Create a Redis database client for testing.

    Uses database 15 by default, or TEST_REDIS_URL if set.
    """
    import warnings

    test_redis_url = os.getenv("TEST_REDIS_URL", "redis://localhost:6379/15")
    settings = TestDatabaseSettings(database_url=test_redis_url)
    client = DatabaseClient(settings)
    client.initialize_database()

    # Test connection
    try:
        async with client.get_connection() as conn:
            await conn.ping()
    except Exception as e:
        warnings.warn(
            f"Redis not available at {test_redis_url}: {e}. "
            "Tests requiring Redis will be skipped.",
            UserWarning,
        )
        await client.close()
        pytest.skip(f"Redis not available: {e}")

    yield client

    # Cleanup: flush test database
    try:
        async with client.get_connection() as conn:
            await conn.flushdb()
    finally:
        await client.close()


@pytest_asyncio.fixture
async def redis_store(redis_db_client: DatabaseClient) -> RedisKeyValueStore:
    """Create a Redis-backed key-value store with scripts loaded."""
    store = RedisKeyValueStore(redis_db_client)
    await register_scripts(store)
    return store
