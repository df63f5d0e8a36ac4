"""Snap domain entities: Snap and SnapClaim."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from ..shared.serializers import CommonSerializersMixin

# Amounts are integer minor units, so "exhausted" means exactly nothing left.
EXHAUSTION_THRESHOLD = 0


class SnapMode(str, Enum):
    EQUAL = "equal"
    RANDOM = "random"


class SnapStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


class ClaimStatus(str, Enum):
    RESERVED = "reserved"  # amount taken from the snap, transfer not settled
    IN_DOUBT = "in_doubt"  # transfer submitted, outcome unknown
    CONFIRMED = "confirmed"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Snap(CommonSerializersMixin, BaseModel):
    """Pooled payment distributed to `snappers_count` claimants.

    Mutators never modify the instance: they return the next snapshot with
    `version` bumped, so the repository can compare-and-set against the
    version that was read.
    """

    id: str = Field(..., min_length=1, max_length=64)
    sender_address: str
    token_symbol: str
    decimals: int = Field(..., ge=0, le=36)
    total_amount: int = Field(..., gt=0, description="Total in minor units")
    remaining_amount: int = Field(..., ge=0, description="Unclaimed minor units")
    snappers_count: int = Field(..., ge=1)
    claimed_count: int = Field(default=0, ge=0)
    mode: SnapMode = SnapMode.EQUAL
    status: SnapStatus = SnapStatus.ACTIVE
    version: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_now)
    updated_at: Optional[datetime] = None

    @property
    def is_exhausted(self) -> bool:
        return self.remaining_amount <= EXHAUSTION_THRESHOLD

    @property
    def remaining_slots(self) -> int:
        return self.snappers_count - self.claimed_count

    def reserve(self, amount: int) -> "Snap":
        """Take `amount` for one claimant; completes the snap when it empties."""
        if self.status != SnapStatus.ACTIVE:
            raise ValueError("Snap is no longer active")
        if amount <= 0 or amount > self.remaining_amount:
            raise ValueError(
                f"Claim amount {amount} outside (0, {self.remaining_amount}]"
            )
        remaining = self.remaining_amount - amount
        status = (
            SnapStatus.COMPLETED
            if remaining <= EXHAUSTION_THRESHOLD
            else SnapStatus.ACTIVE
        )
        return self.model_copy(
            update={
                "remaining_amount": remaining,
                "claimed_count": self.claimed_count + 1,
                "status": status,
                "version": self.version + 1,
                "updated_at": _now(),
            }
        )

    def release(self, amount: int) -> "Snap":
        """Undo a reservation whose transfer was rejected."""
        if self.remaining_amount + amount > self.total_amount:
            raise ValueError("Release would exceed the snap total")
        # A snap completed by this very reservation goes back to active;
        # an expired snap stays expired.
        status = (
            SnapStatus.ACTIVE if self.status == SnapStatus.COMPLETED else self.status
        )
        return self.model_copy(
            update={
                "remaining_amount": self.remaining_amount + amount,
                "claimed_count": max(self.claimed_count - 1, 0),
                "status": status,
                "version": self.version + 1,
                "updated_at": _now(),
            }
        )

    def expire(self) -> "Snap":
        if self.status != SnapStatus.ACTIVE:
            raise ValueError("Only active snaps can be cancelled")
        return self.model_copy(
            update={
                "status": SnapStatus.EXPIRED,
                "version": self.version + 1,
                "updated_at": _now(),
            }
        )


class SnapClaim(CommonSerializersMixin, BaseModel):
    """One claimant's share of a snap. `id` doubles as the reservation id."""

    id: UUID = Field(default_factory=uuid4)
    snap_id: str
    claimer_address: str
    amount: int = Field(..., gt=0)
    status: ClaimStatus = ClaimStatus.RESERVED
    tx_hash: Optional[str] = None
    claimed_at: datetime = Field(default_factory=_now)
    confirmed_at: Optional[datetime] = None

    def confirm(self, tx_hash: str) -> "SnapClaim":
        return self.model_copy(
            update={
                "status": ClaimStatus.CONFIRMED,
                "tx_hash": tx_hash,
                "confirmed_at": _now(),
            }
        )

    def with_status(self, status: ClaimStatus) -> "SnapClaim":
        return self.model_copy(update={"status": status})
