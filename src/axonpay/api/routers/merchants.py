"""Merchant directory API routes."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from redis.exceptions import RedisError

from ...application.scan.dtos import MerchantResponseDTO, RegisterMerchantDTO
from ...application.scan.use_cases.dispatch import PaymentDispatchService
from ...domain.errors import MerchantAlreadyExistsError
from ..dependencies import get_dispatch_service

router = APIRouter(prefix="/merchants", tags=["merchants"])


@router.post(
    "", response_model=MerchantResponseDTO, status_code=status.HTTP_201_CREATED
)
async def register_merchant(
    merchant_data: RegisterMerchantDTO,
    service: PaymentDispatchService = Depends(get_dispatch_service),
) -> MerchantResponseDTO:
    """Register a merchant under an AXON: QR prefix."""
    try:
        return await service.register_merchant(merchant_data)
    except MerchantAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RedisError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Merchant directory unavailable: {str(e)}",
        )


@router.get("", response_model=List[MerchantResponseDTO])
async def list_merchants(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: PaymentDispatchService = Depends(get_dispatch_service),
) -> List[MerchantResponseDTO]:
    return await service.list_merchants(skip=skip, limit=limit)
