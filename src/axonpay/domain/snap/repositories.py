"""Snap domain repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional

from .entities import ClaimStatus, Snap, SnapClaim


class WriteCode(IntEnum):
    """Outcome of an atomic conditional write (mirrors the Lua return codes)."""

    STALE = 0
    APPLIED = 1
    MISSING = 2
    NOT_ACTIVE = 3
    DUPLICATE = 5
    MISMATCH = 6


@dataclass(frozen=True)
class ReserveResult:
    code: WriteCode
    snap: Optional[Snap] = None
    existing_claim: Optional[SnapClaim] = None


class SnapRepository(ABC):
    """Abstract repository interface for Snap and SnapClaim entities.

    Every mutating method is a single atomic conditional write keyed on the
    snap `version` that the caller read.
    """

    @abstractmethod
    async def create(self, snap: Snap) -> Snap:
        """Persist a new snap. Raises SnapAlreadyExistsError on id collision."""
        pass

    @abstractmethod
    async def get_by_id(self, snap_id: str) -> Optional[Snap]:
        pass

    @abstractmethod
    async def get_by_sender(
        self, sender_address: str, skip: int = 0, limit: int = 100
    ) -> List[Snap]:
        """Snaps created by `sender_address`, newest first."""
        pass

    @abstractmethod
    async def get_claim(self, snap_id: str, claimer_address: str) -> Optional[SnapClaim]:
        pass

    @abstractmethod
    async def get_claims(self, snap_id: str) -> List[SnapClaim]:
        """Claims of a snap in claim order."""
        pass

    @abstractmethod
    async def count_claims(self, snap_id: str) -> int:
        pass

    @abstractmethod
    async def reserve_claim(
        self, expected_version: int, next_snap: Snap, claim: SnapClaim
    ) -> ReserveResult:
        """
        Atomically apply `next_snap` and insert `claim`.

        Returns:
          APPLIED    -> snap = next_snap
          STALE      -> snap = current snap (version moved on)
          MISSING    -> snap does not exist
          NOT_ACTIVE -> snap = current snap
          DUPLICATE  -> existing_claim = the claim already held by this claimer
        """
        pass

    @abstractmethod
    async def release_claim(
        self, expected_version: int, restored_snap: Snap, claim: SnapClaim
    ) -> tuple[WriteCode, Optional[Snap]]:
        """
        Atomically apply `restored_snap` and delete the reserved `claim`.

        Returns APPLIED, STALE (with current snap), MISSING, or MISMATCH when
        the stored claim is not this reservation in `reserved` state.
        """
        pass

    @abstractmethod
    async def transition_claim(
        self, claim: SnapClaim, expected_status: ClaimStatus, new_claim: SnapClaim
    ) -> tuple[WriteCode, Optional[SnapClaim]]:
        """Replace `claim` with `new_claim` if it still has `expected_status`."""
        pass

    @abstractmethod
    async def compare_and_set(
        self, expected_version: int, next_snap: Snap
    ) -> tuple[WriteCode, Optional[Snap]]:
        pass
