"""Data Transfer Objects for scanning and merchant payments."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ...domain.scan.entities import Merchant
from ...domain.shared.serializers import CommonSerializersMixin


class ClassifyPayloadDTO(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={"example": {"payload": "AXON:kopi-kenangan-01"}}
    )

    payload: str = Field(..., max_length=4096)


class PaymentTargetDTO(BaseModel):
    """Who gets paid for a scanned code and what the wallet shows."""

    kind: Literal["direct_transfer", "registered_merchant", "qris_merchant"]
    name: str
    wallet_address: str
    qris_payload: Optional[str] = None
    suggested_amount: Optional[str] = None


class QrisDisbursementDTO(BaseModel):
    """Sent after the on-chain leg to the vault has been broadcast."""

    tx_hash: str = Field(..., min_length=1)
    amount: str = Field(..., min_length=1)
    qris_payload: str = Field(..., min_length=1)
    merchant_name: Optional[str] = None


class QrisDisbursementResponseDTO(BaseModel):
    success: bool
    message: Optional[str] = None


class RegisterMerchantDTO(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Kopi Kenangan",
                "wallet_address": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
                "qr_prefix": "AXON:kopi-kenangan-01",
            }
        }
    )

    name: str = Field(..., min_length=1, max_length=100)
    wallet_address: str
    qr_prefix: str = Field(..., min_length=1, max_length=256)


class MerchantResponseDTO(CommonSerializersMixin, BaseModel):
    id: UUID
    name: str
    wallet_address: str
    qr_prefix: str
    created_at: datetime

    @classmethod
    def from_entity(cls, merchant: Merchant) -> "MerchantResponseDTO":
        return cls(**merchant.model_dump())
