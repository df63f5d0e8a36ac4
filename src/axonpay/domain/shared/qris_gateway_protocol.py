"""Protocol interface for the QRIS disbursement gateway."""

from __future__ import annotations

from typing import Optional, Protocol

from pydantic import BaseModel


class QrisDisbursementRequest(BaseModel):
    tx_hash: str
    amount: str
    qris_payload: str
    merchant_name: str


class QrisDisbursementResult(BaseModel):
    success: bool
    message: Optional[str] = None


class QrisGatewayProtocol(Protocol):
    """Pays a QRIS merchant in fiat once the crypto leg reached the vault."""

    async def disburse(
        self, request: QrisDisbursementRequest
    ) -> QrisDisbursementResult: ...
