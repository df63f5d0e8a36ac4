"""Snap API routes."""

from __future__ import annotations

import logging
import time
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram
from redis.exceptions import RedisError

from ...application.snap.dtos import (
    CancelSnapDTO,
    ClaimError,
    ClaimResultDTO,
    ClaimSnapDTO,
    CreateSnapDTO,
    SnapClaimResponseDTO,
    SnapResponseDTO,
)
from ...application.snap.use_cases.snap_ledger import SnapLedger
from ...domain.errors import (
    SnapAlreadyExistsError,
    SnapContentionError,
    SnapNotActiveError,
    SnapNotFoundError,
    SnapPermissionError,
)
from ..dependencies import get_snap_ledger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/snaps", tags=["snaps"])

CLAIM_DURATION_BUCKETS = (
    [float(x) for x in (5, 10, 25, 50, 100, 250, 500)]
    + [float(x) for x in range(1000, 11000, 1000)]  # transfer calls dominate
    + [float("inf")]
)

snap_claims_total = Counter(
    "snap_claims_total",
    "Total snap claim requests by outcome",
    ["outcome"],
)

snap_claim_duration_milliseconds = Histogram(
    "snap_claim_duration_milliseconds",
    "Wall time to process a snap claim, including the transfer (ms)",
    ["outcome"],
    buckets=CLAIM_DURATION_BUCKETS,
)

CLAIM_ERROR_STATUS = {
    ClaimError.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ClaimError.NOT_ACTIVE: status.HTTP_409_CONFLICT,
    ClaimError.EXHAUSTED: status.HTTP_409_CONFLICT,
    ClaimError.ALREADY_CLAIMED: status.HTTP_409_CONFLICT,
    ClaimError.TRANSFER_FAILED: status.HTTP_502_BAD_GATEWAY,
}


def _unavailable(e: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Snap store unavailable: {str(e)}",
    )


@router.post("", response_model=SnapResponseDTO, status_code=status.HTTP_201_CREATED)
async def create_snap(
    snap_data: CreateSnapDTO, ledger: SnapLedger = Depends(get_snap_ledger)
) -> SnapResponseDTO:
    """Record a funded snap."""
    try:
        return await ledger.create_snap(snap_data)
    except SnapAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RedisError as e:
        raise _unavailable(e)


@router.get("", response_model=List[SnapResponseDTO])
async def get_user_snaps(
    sender_address: str = Query(..., description="Sender wallet address"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    ledger: SnapLedger = Depends(get_snap_ledger),
) -> List[SnapResponseDTO]:
    """List a sender's snaps, newest first."""
    try:
        return await ledger.get_user_snaps(sender_address, skip=skip, limit=limit)
    except RedisError as e:
        raise _unavailable(e)


@router.get("/{snap_id}", response_model=SnapResponseDTO)
async def get_snap(
    snap_id: str = Path(..., description="Snap identifier"),
    ledger: SnapLedger = Depends(get_snap_ledger),
) -> SnapResponseDTO:
    try:
        return await ledger.get_snap(snap_id)
    except SnapNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except RedisError as e:
        raise _unavailable(e)


@router.get("/{snap_id}/claims", response_model=List[SnapClaimResponseDTO])
async def get_snap_claims(
    snap_id: str = Path(..., description="Snap identifier"),
    ledger: SnapLedger = Depends(get_snap_ledger),
) -> List[SnapClaimResponseDTO]:
    try:
        return await ledger.get_claims(snap_id)
    except SnapNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except RedisError as e:
        raise _unavailable(e)


@router.post("/{snap_id}/claims", response_model=ClaimResultDTO)
async def claim_snap(
    claim_data: ClaimSnapDTO,
    snap_id: str = Path(..., description="Snap identifier"),
    ledger: SnapLedger = Depends(get_snap_ledger),
):
    """Claim one share of a snap. Failures carry a ClaimResult body."""
    start_time = time.perf_counter()
    outcome = "server_error"
    try:
        result = await ledger.claim(snap_id, claim_data.claimer_address)
        outcome = "success" if result.success else result.error.value
        if result.success:
            return result
        return JSONResponse(
            status_code=CLAIM_ERROR_STATUS[result.error],
            content=result.model_dump(mode="json"),
        )
    except (RedisError, SnapContentionError) as e:
        outcome = "unavailable"
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Claim could not be processed, retry later: {str(e)}",
        )
    except Exception as e:
        logger.exception("Claim on snap %s failed", snap_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to process claim: {str(e)}",
        )
    finally:
        snap_claims_total.labels(outcome=outcome).inc()
        snap_claim_duration_milliseconds.labels(outcome=outcome).observe(
            (time.perf_counter() - start_time) * 1000
        )


@router.post("/{snap_id}/cancellation", response_model=SnapResponseDTO)
async def cancel_snap(
    cancel_data: CancelSnapDTO,
    snap_id: str = Path(..., description="Snap identifier"),
    ledger: SnapLedger = Depends(get_snap_ledger),
) -> SnapResponseDTO:
    """Expire an active snap. Sender only."""
    try:
        return await ledger.cancel_snap(snap_id, cancel_data.sender_address)
    except SnapNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except SnapPermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except SnapNotActiveError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except (RedisError, SnapContentionError) as e:
        raise _unavailable(e)
