"""Scan API routes: classify and resolve QR payloads."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from prometheus_client import Counter
from redis.exceptions import RedisError

from ...application.scan.dtos import ClassifyPayloadDTO, PaymentTargetDTO
from ...application.scan.use_cases.dispatch import PaymentDispatchService
from ...domain.errors import InvalidPayloadError, MerchantNotFoundError
from ...domain.scan.intents import PaymentIntent
from ..dependencies import get_dispatch_service

router = APIRouter(prefix="/scan", tags=["scan"])

scan_classifications_total = Counter(
    "scan_classifications_total",
    "Scanned payloads by classified kind",
    ["kind"],
)


@router.post("/classifications", response_model=PaymentIntent)
async def classify_payload(
    payload_data: ClassifyPayloadDTO,
    service: PaymentDispatchService = Depends(get_dispatch_service),
) -> PaymentIntent:
    """Classify a scanned payload. Never fails; bad input yields `invalid`."""
    intent = service.classify(payload_data.payload)
    scan_classifications_total.labels(kind=intent.kind).inc()
    return intent


@router.post("/resolutions", response_model=PaymentTargetDTO)
async def resolve_payload(
    payload_data: ClassifyPayloadDTO,
    service: PaymentDispatchService = Depends(get_dispatch_service),
) -> PaymentTargetDTO:
    """Resolve a scanned payload to the wallet that should be paid."""
    try:
        return await service.resolve(payload_data.payload)
    except InvalidPayloadError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except MerchantNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except RedisError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Merchant directory unavailable: {str(e)}",
        )
