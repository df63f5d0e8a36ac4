"""Protocol interface for the funds-transfer collaborator.

The snap ledger moves money through this interface only. Implementations must
treat `idempotency_key` as the identity of the transfer: calling `transfer`
again with the same key must not pay twice.
"""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, Field


class TransferRequest(BaseModel):
    to_address: str
    amount: int = Field(..., gt=0, description="Minor units")
    token_symbol: str


class TransferReceipt(BaseModel):
    tx_hash: str


class FundsTransferProtocol(Protocol):
    """Moves tokens from the snap vault to a claimant."""

    async def transfer(
        self, request: TransferRequest, idempotency_key: str
    ) -> TransferReceipt:
        """Submit the transfer.

        Raises:
            TransferRejectedError: definitively not executed; safe to roll back.
            TransferOutcomeUnknownError: may have executed; keep the reservation.
        """
        ...
