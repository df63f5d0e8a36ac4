"""Unit tests for snap API routes."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from axonpay.api.dependencies import get_snap_ledger
from axonpay.api.routers.snaps import router
from axonpay.application.snap.dtos import (
    ClaimError,
    ClaimResultDTO,
    SnapClaimResponseDTO,
    SnapResponseDTO,
)
from axonpay.domain.errors import (
    SnapAlreadyExistsError,
    SnapContentionError,
    SnapNotActiveError,
    SnapNotFoundError,
    SnapPermissionError,
)
from axonpay.domain.snap.entities import ClaimStatus, SnapMode, SnapStatus

SENDER = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
CLAIMER = "0x000000000000000000000000000000000000dEaD"


@pytest.fixture
def test_setup():
    """Set up test fixtures."""
    app = FastAPI()
    app.include_router(router, prefix="/api/v1")

    snap_response = SnapResponseDTO(
        id="k3j9x0ab",
        sender_address=SENDER.lower(),
        token_symbol="USDC",
        decimals=6,
        total_amount="100",
        remaining_amount="100",
        snappers_count=4,
        claimed_count=0,
        mode=SnapMode.EQUAL,
        status=SnapStatus.ACTIVE,
        created_at=datetime.now(timezone.utc),
        updated_at=None,
    )

    mock_ledger = AsyncMock()
    app.dependency_overrides[get_snap_ledger] = lambda: mock_ledger

    client = TestClient(app)

    return {
        "client": client,
        "snap_response": snap_response,
        "mock_ledger": mock_ledger,
    }


def create_payload() -> dict:
    return {
        "id": "k3j9x0ab",
        "sender_address": SENDER,
        "token_symbol": "USDC",
        "total_amount": "100",
        "snappers_count": 4,
        "mode": "equal",
    }


def test_create_snap_success(test_setup):
    test_setup["mock_ledger"].create_snap.return_value = test_setup["snap_response"]

    response = test_setup["client"].post("/api/v1/snaps", json=create_payload())

    assert response.status_code == 201
    assert response.json()["id"] == "k3j9x0ab"
    assert response.json()["remaining_amount"] == "100"


def test_create_snap_rejects_bad_sender(test_setup):
    payload = create_payload() | {"sender_address": "0x123"}

    response = test_setup["client"].post("/api/v1/snaps", json=payload)

    assert response.status_code == 422
    test_setup["mock_ledger"].create_snap.assert_not_called()


def test_create_snap_duplicate_is_conflict(test_setup):
    test_setup["mock_ledger"].create_snap.side_effect = SnapAlreadyExistsError("taken")

    response = test_setup["client"].post("/api/v1/snaps", json=create_payload())

    assert response.status_code == 409


def test_create_snap_validation_error_is_bad_request(test_setup):
    test_setup["mock_ledger"].create_snap.side_effect = ValueError("Unsupported token")

    response = test_setup["client"].post("/api/v1/snaps", json=create_payload())

    assert response.status_code == 400
    assert response.json()["detail"] == "Unsupported token"


def test_get_snap_not_found(test_setup):
    test_setup["mock_ledger"].get_snap.side_effect = SnapNotFoundError("missing")

    response = test_setup["client"].get("/api/v1/snaps/nope")

    assert response.status_code == 404


def test_get_user_snaps(test_setup):
    test_setup["mock_ledger"].get_user_snaps.return_value = [
        test_setup["snap_response"]
    ]

    response = test_setup["client"].get(
        "/api/v1/snaps", params={"sender_address": SENDER}
    )

    assert response.status_code == 200
    assert len(response.json()) == 1
    test_setup["mock_ledger"].get_user_snaps.assert_called_once_with(
        SENDER, skip=0, limit=100
    )


def test_get_snap_claims(test_setup):
    claim = SnapClaimResponseDTO(
        id=uuid4(),
        snap_id="k3j9x0ab",
        claimer_address=CLAIMER.lower(),
        amount="25",
        status=ClaimStatus.CONFIRMED,
        tx_hash="0xabc",
        claimed_at=datetime.now(timezone.utc),
        confirmed_at=datetime.now(timezone.utc),
    )
    test_setup["mock_ledger"].get_claims.return_value = [claim]

    response = test_setup["client"].get("/api/v1/snaps/k3j9x0ab/claims")

    assert response.status_code == 200
    assert response.json()[0]["status"] == "confirmed"


def test_claim_success(test_setup):
    test_setup["mock_ledger"].claim.return_value = ClaimResultDTO(
        success=True, amount="25", amount_units=25_000_000, tx_hash="0xabc"
    )

    response = test_setup["client"].post(
        "/api/v1/snaps/k3j9x0ab/claims", json={"claimer_address": CLAIMER}
    )

    assert response.status_code == 200
    assert response.json()["amount"] == "25"
    test_setup["mock_ledger"].claim.assert_called_once_with("k3j9x0ab", CLAIMER)


@pytest.mark.parametrize(
    "error, expected_status",
    [
        (ClaimError.NOT_FOUND, 404),
        (ClaimError.NOT_ACTIVE, 409),
        (ClaimError.EXHAUSTED, 409),
        (ClaimError.ALREADY_CLAIMED, 409),
        (ClaimError.TRANSFER_FAILED, 502),
    ],
)
def test_claim_failures_map_to_status(test_setup, error, expected_status):
    test_setup["mock_ledger"].claim.return_value = ClaimResultDTO.failed(
        error, "nope"
    )

    response = test_setup["client"].post(
        "/api/v1/snaps/k3j9x0ab/claims", json={"claimer_address": CLAIMER}
    )

    assert response.status_code == expected_status
    assert response.json()["success"] is False
    assert response.json()["error"] == error.value


def test_claim_contention_is_service_unavailable(test_setup):
    test_setup["mock_ledger"].claim.side_effect = SnapContentionError("busy")

    response = test_setup["client"].post(
        "/api/v1/snaps/k3j9x0ab/claims", json={"claimer_address": CLAIMER}
    )

    assert response.status_code == 503


def test_claim_store_down_is_service_unavailable(test_setup):
    test_setup["mock_ledger"].claim.side_effect = RedisConnectionError("down")

    response = test_setup["client"].post(
        "/api/v1/snaps/k3j9x0ab/claims", json={"claimer_address": CLAIMER}
    )

    assert response.status_code == 503


def test_claim_unexpected_error_is_server_error(test_setup):
    test_setup["mock_ledger"].claim.side_effect = RuntimeError("boom")

    response = test_setup["client"].post(
        "/api/v1/snaps/k3j9x0ab/claims", json={"claimer_address": CLAIMER}
    )

    assert response.status_code == 500


@pytest.mark.parametrize(
    "exc, expected_status",
    [
        (SnapNotFoundError("missing"), 404),
        (SnapPermissionError("not yours"), 403),
        (SnapNotActiveError("Snap is completed"), 409),
    ],
)
def test_cancel_errors(test_setup, exc, expected_status):
    test_setup["mock_ledger"].cancel_snap.side_effect = exc

    response = test_setup["client"].post(
        "/api/v1/snaps/k3j9x0ab/cancellation", json={"sender_address": SENDER}
    )

    assert response.status_code == expected_status


def test_cancel_success(test_setup):
    expired = test_setup["snap_response"].model_copy(
        update={"status": SnapStatus.EXPIRED}
    )
    test_setup["mock_ledger"].cancel_snap.return_value = expired

    response = test_setup["client"].post(
        "/api/v1/snaps/k3j9x0ab/cancellation", json={"sender_address": SENDER}
    )

    assert response.status_code == 200
    assert response.json()["status"] == "expired"
