"""QRIS disbursement API routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from prometheus_client import Counter

from ...application.scan.dtos import QrisDisbursementDTO, QrisDisbursementResponseDTO
from ...application.scan.use_cases.dispatch import PaymentDispatchService
from ...domain.errors import InvalidPayloadError
from ..dependencies import get_dispatch_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/qris", tags=["qris"])

qris_disbursements_total = Counter(
    "qris_disbursements_total",
    "QRIS disbursement requests by result",
    ["status"],
)


@router.post("/disbursements", response_model=QrisDisbursementResponseDTO)
async def disburse_qris(
    disbursement_data: QrisDisbursementDTO,
    service: PaymentDispatchService = Depends(get_dispatch_service),
) -> QrisDisbursementResponseDTO:
    """Ask the gateway to pay a QRIS merchant after the vault transfer."""
    try:
        result = await service.disburse_qris(disbursement_data)
    except InvalidPayloadError as e:
        qris_disbursements_total.labels(status="client_error").inc()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        qris_disbursements_total.labels(status="server_error").inc()
        logger.exception("QRIS disbursement for tx %s failed", disbursement_data.tx_hash)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to process QRIS disbursement: {str(e)}",
        )
    qris_disbursements_total.labels(
        status="accepted" if result.success else "queued"
    ).inc()
    return result
