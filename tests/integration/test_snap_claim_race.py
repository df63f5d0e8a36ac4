"""Integration tests for concurrent snap claims against real Redis.

The Lua scripts are the only serialization point, so these tests hammer the
same snap from many tasks and check the ledger invariants afterwards:
claims sum to what left the snap, no address is paid twice, and a snap is
never overdrawn.

Usage:
    pytest tests/integration/test_snap_claim_race.py --race-iterations=200
"""

from __future__ import annotations

import asyncio
import random
import uuid

import pytest

from axonpay.application.snap.dtos import ClaimError, CreateSnapDTO
from axonpay.application.snap.use_cases.snap_ledger import SnapLedger
from axonpay.domain.errors import MerchantAlreadyExistsError, SnapAlreadyExistsError
from axonpay.domain.scan.entities import Merchant
from axonpay.domain.snap.entities import ClaimStatus, SnapMode, SnapStatus
from axonpay.infrastructure.merchant.merchant_directory_impl import (
    MerchantDirectoryImpl,
)
from axonpay.infrastructure.snap.snap_repository_impl import SnapRepositoryImpl
from axonpay.infrastructure.storage import RedisKeyValueStore
from tests.fixtures import SENDER, FakeTransferClient, claimer_address


def new_snap(snap_id: str, total: str, snappers: int, mode: SnapMode) -> CreateSnapDTO:
    return CreateSnapDTO(
        id=snap_id,
        sender_address=SENDER,
        token_symbol="IDRX",
        total_amount=total,
        snappers_count=snappers,
        mode=mode,
    )


@pytest.mark.asyncio
async def test_concurrent_claims_respect_invariants(
    redis_store: RedisKeyValueStore, request: pytest.FixtureRequest
) -> None:
    iterations = request.config.getoption("--race-iterations", default=50)
    repo = SnapRepositoryImpl(redis_store)

    for i in range(iterations):
        transfers = FakeTransferClient()
        ledger = SnapLedger(repo, transfers, max_attempts=256, rng=random.Random(i))
        mode = SnapMode.RANDOM if i % 2 else SnapMode.EQUAL
        snap_id = f"race-{i}-{uuid.uuid4().hex[:8]}"
        # 18 decimals: amounts well past what a Lua double can hold exactly
        await ledger.create_snap(new_snap(snap_id, "1000000.000000000000000007", 5, mode))

        results = await asyncio.gather(
            *(ledger.claim(snap_id, claimer_address(n)) for n in range(12))
        )

        winners = [r for r in results if r.success]
        assert len(winners) == 5
        assert sum(r.amount_units for r in winners) == 1_000_000_000_000_000_000_000_007
        assert all(
            r.error in (ClaimError.NOT_ACTIVE, ClaimError.EXHAUSTED)
            for r in results
            if not r.success
        )
        snap = await ledger.get_snap(snap_id)
        assert snap.status == SnapStatus.COMPLETED
        assert snap.remaining_amount == "0"
        assert await ledger.get_claim_count(snap_id) == 5
        assert len(transfers.calls) == 5


@pytest.mark.asyncio
async def test_same_address_is_paid_once(redis_store: RedisKeyValueStore) -> None:
    transfers = FakeTransferClient()
    ledger = SnapLedger(SnapRepositoryImpl(redis_store), transfers)
    await ledger.create_snap(new_snap("same-address", "10", 10, SnapMode.EQUAL))

    results = await asyncio.gather(
        *(ledger.claim("same-address", claimer_address(1)) for _ in range(10))
    )

    assert sum(r.success for r in results) == 1
    assert {r.error for r in results if not r.success} == {ClaimError.ALREADY_CLAIMED}
    assert len(transfers.calls) == 1
    (claim,) = await ledger.get_claims("same-address")
    assert claim.status == ClaimStatus.CONFIRMED


@pytest.mark.asyncio
async def test_duplicate_snap_id_is_rejected(redis_store: RedisKeyValueStore) -> None:
    ledger = SnapLedger(SnapRepositoryImpl(redis_store), FakeTransferClient())
    await ledger.create_snap(new_snap("dup", "1", 1, SnapMode.EQUAL))

    with pytest.raises(SnapAlreadyExistsError):
        await ledger.create_snap(new_snap("dup", "2", 1, SnapMode.EQUAL))


@pytest.mark.asyncio
async def test_merchant_directory_round_trip(redis_store: RedisKeyValueStore) -> None:
    directory = MerchantDirectoryImpl(redis_store)
    merchant = Merchant(
        name="Warung Sri",
        wallet_address="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        qr_prefix="AXON:warung-sri",
    )

    await directory.register(merchant)
    with pytest.raises(MerchantAlreadyExistsError):
        await directory.register(merchant)

    found = await directory.lookup("AXON:warung-sri")
    assert found is not None
    assert found.id == merchant.id
    assert await directory.lookup("AXON:other") is None
