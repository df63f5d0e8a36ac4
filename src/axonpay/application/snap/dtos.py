"""Data Transfer Objects for the snap application layer."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from ...codec.amounts import format_minor_units
from ...codec.classifier import is_address
from ...domain.shared.serializers import CommonSerializersMixin
from ...domain.snap.entities import ClaimStatus, Snap, SnapClaim, SnapMode, SnapStatus


def _validate_address(v: str) -> str:
    if not is_address(v):
        raise ValueError("must be 0x followed by 40 hex characters")
    return v


Address = Annotated[str, AfterValidator(_validate_address)]


class CreateSnapDTO(BaseModel):
    """DTO for creating a snap after its funding transfer went through."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "k3j9x0ab",
                "sender_address": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
                "token_symbol": "USDC",
                "total_amount": "100",
                "snappers_count": 4,
                "mode": "equal",
            }
        }
    )

    id: str = Field(..., min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_-]+$")
    sender_address: Address
    token_symbol: str = Field(..., min_length=1, max_length=16)
    total_amount: str = Field(..., description="Decimal amount, e.g. '12.5'")
    snappers_count: int = Field(..., ge=1, le=10_000)
    mode: SnapMode = SnapMode.EQUAL


class ClaimSnapDTO(BaseModel):
    claimer_address: Address


class CancelSnapDTO(BaseModel):
    sender_address: Address


class ClaimError(str, Enum):
    NOT_FOUND = "not_found"
    NOT_ACTIVE = "not_active"
    EXHAUSTED = "exhausted"
    ALREADY_CLAIMED = "already_claimed"
    TRANSFER_FAILED = "transfer_failed"


class ClaimResultDTO(BaseModel):
    """Outcome of a claim. Expected failures are values, not exceptions."""

    success: bool
    amount: Optional[str] = None
    amount_units: Optional[int] = None
    tx_hash: Optional[str] = None
    error: Optional[ClaimError] = None
    message: Optional[str] = None

    @classmethod
    def failed(cls, error: ClaimError, message: str) -> "ClaimResultDTO":
        return cls(success=False, error=error, message=message)


class SnapResponseDTO(CommonSerializersMixin, BaseModel):
    """DTO for returning snap data with display amounts."""

    id: str
    sender_address: str
    token_symbol: str
    decimals: int
    total_amount: str
    remaining_amount: str
    snappers_count: int
    claimed_count: int
    mode: SnapMode
    status: SnapStatus
    created_at: datetime
    updated_at: Optional[datetime]

    @classmethod
    def from_entity(cls, snap: Snap) -> "SnapResponseDTO":
        return cls(
            id=snap.id,
            sender_address=snap.sender_address,
            token_symbol=snap.token_symbol,
            decimals=snap.decimals,
            total_amount=format_minor_units(snap.total_amount, snap.decimals),
            remaining_amount=format_minor_units(snap.remaining_amount, snap.decimals),
            snappers_count=snap.snappers_count,
            claimed_count=snap.claimed_count,
            mode=snap.mode,
            status=snap.status,
            created_at=snap.created_at,
            updated_at=snap.updated_at,
        )


class SnapClaimResponseDTO(CommonSerializersMixin, BaseModel):
    id: UUID
    snap_id: str
    claimer_address: str
    amount: str
    status: ClaimStatus
    tx_hash: Optional[str]
    claimed_at: datetime
    confirmed_at: Optional[datetime]

    @classmethod
    def from_entity(cls, claim: SnapClaim, decimals: int) -> "SnapClaimResponseDTO":
        return cls(
            id=claim.id,
            snap_id=claim.snap_id,
            claimer_address=claim.claimer_address,
            amount=format_minor_units(claim.amount, decimals),
            status=claim.status,
            tx_hash=claim.tx_hash,
            claimed_at=claim.claimed_at,
            confirmed_at=claim.confirmed_at,
        )
