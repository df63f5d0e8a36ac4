"""Tests for the root and health endpoints of the assembled app."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from axonpay.api.app import create_app
from axonpay.api.dependencies import get_database_client_dependency
from axonpay.infrastructure.database import DatabaseClient


@pytest.fixture
def test_setup():
    """Set up test fixtures."""
    app = create_app()
    db_client = MagicMock()
    db_client.ping = AsyncMock(return_value=True)
    app.dependency_overrides[get_database_client_dependency] = lambda: db_client

    return {"client": TestClient(app), "db_client": db_client}


def test_health_reports_redis_up(test_setup):
    response = test_setup["client"].get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["redis"] == "ok"


def test_health_reports_degraded_without_redis(test_setup):
    test_setup["db_client"].ping.return_value = False

    response = test_setup["client"].get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["redis"] == "unavailable"


def test_root_points_at_docs(test_setup):
    response = test_setup["client"].get("/")

    assert response.status_code == 200
    assert response.json()["docs"] == "/docs"


class UnreachableSettings:
    database_url = "redis://127.0.0.1:1/0"


@pytest.mark.asyncio
async def test_ping_is_false_when_redis_is_unreachable():
    client = DatabaseClient(UnreachableSettings())
    try:
        assert await client.ping() is False
    finally:
        await client.close()
