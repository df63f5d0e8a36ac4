"""Use cases for pooled snap payments."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import List, Optional

from ....codec.amounts import (
    format_minor_units,
    next_claim_amount,
    to_minor_units,
    token_decimals,
)
from ....domain.errors import (
    SnapContentionError,
    SnapNotActiveError,
    SnapNotFoundError,
    SnapPermissionError,
    TransferOutcomeUnknownError,
    TransferRejectedError,
)
from ....domain.shared.transfer_client_protocol import (
    FundsTransferProtocol,
    TransferRequest,
)
from ....domain.snap.entities import ClaimStatus, Snap, SnapClaim, SnapStatus
from ....domain.snap.repositories import SnapRepository, WriteCode
from ..dtos import (
    ClaimError,
    ClaimResultDTO,
    CreateSnapDTO,
    SnapClaimResponseDTO,
    SnapResponseDTO,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 16


class SnapLedger:
    """Owns the snap lifecycle: creation, exclusive claims, completion, cancellation.

    A claim is a three step saga:

    1. reserve: one atomic compare-and-set that decrements the snap and writes
       the claim row (retried on version conflicts);
    2. transfer: a single call to the funds-transfer collaborator, keyed by the
       reservation id, made outside any lock;
    3. settle: confirm the claim, or roll the reservation back when the
       transfer was definitively rejected. If the outcome is unknown the
       reservation is kept as ``in_doubt`` and the next claim by the same
       address resumes it with the same idempotency key.
    """

    def __init__(
        self,
        snap_repository: SnapRepository,
        transfer_client: FundsTransferProtocol,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        rng: Optional[random.Random] = None,
    ):
        self.snap_repository = snap_repository
        self.transfer_client = transfer_client
        self.max_attempts = max_attempts
        self._rng = rng or random.SystemRandom()

    async def create_snap(self, dto: CreateSnapDTO) -> SnapResponseDTO:
        """Record a funded snap as active."""
        decimals = token_decimals(dto.token_symbol)
        total = to_minor_units(dto.total_amount, decimals)
        if total <= 0:
            raise ValueError("Amount must be positive")
        if total < dto.snappers_count:
            raise ValueError(
                "Amount too small to give every snapper at least one unit"
            )

        snap = Snap(
            id=dto.id,
            sender_address=dto.sender_address.lower(),
            token_symbol=dto.token_symbol,
            decimals=decimals,
            total_amount=total,
            remaining_amount=total,
            snappers_count=dto.snappers_count,
            mode=dto.mode,
        )
        await self.snap_repository.create(snap)
        logger.info(
            "Snap %s created: %s %s for %d snappers (%s)",
            snap.id,
            dto.total_amount,
            snap.token_symbol,
            snap.snappers_count,
            snap.mode.value,
        )
        return SnapResponseDTO.from_entity(snap)

    async def _require_snap(self, snap_id: str) -> Snap:
        snap = await self.snap_repository.get_by_id(snap_id)
        if snap is None:
            raise SnapNotFoundError(f"Snap {snap_id} not found")
        return snap

    async def get_snap(self, snap_id: str) -> SnapResponseDTO:
        return SnapResponseDTO.from_entity(await self._require_snap(snap_id))

    async def get_claim_count(self, snap_id: str) -> int:
        return await self.snap_repository.count_claims(snap_id)

    async def get_claims(self, snap_id: str) -> List[SnapClaimResponseDTO]:
        snap = await self._require_snap(snap_id)
        claims = await self.snap_repository.get_claims(snap_id)
        return [SnapClaimResponseDTO.from_entity(c, snap.decimals) for c in claims]

    async def get_user_snaps(
        self, sender_address: str, skip: int = 0, limit: int = 100
    ) -> List[SnapResponseDTO]:
        snaps = await self.snap_repository.get_by_sender(
            sender_address.lower(), skip=skip, limit=limit
        )
        return [SnapResponseDTO.from_entity(s) for s in snaps]

    async def cancel_snap(self, snap_id: str, sender_address: str) -> SnapResponseDTO:
        """Expire an active snap. Only its sender may do this."""
        for _ in range(self.max_attempts):
            snap = await self._require_snap(snap_id)
            if snap.sender_address != sender_address.lower():
                raise SnapPermissionError("Only the sender can cancel this snap")
            if snap.status != SnapStatus.ACTIVE:
                raise SnapNotActiveError(f"Snap is {snap.status.value}")

            code, current = await self.snap_repository.compare_and_set(
                snap.version, snap.expire()
            )
            if code == WriteCode.APPLIED and current is not None:
                logger.info("Snap %s cancelled by sender", snap_id)
                return SnapResponseDTO.from_entity(current)
            if code == WriteCode.MISSING:
                raise SnapNotFoundError(f"Snap {snap_id} not found")
        raise SnapContentionError(f"Snap {snap_id} stayed contended while cancelling")

    async def claim(self, snap_id: str, claimer_address: str) -> ClaimResultDTO:
        """Claim one share of a snap for `claimer_address`."""
        claimer = claimer_address.lower()

        for _ in range(self.max_attempts):
            snap = await self.snap_repository.get_by_id(snap_id)
            if snap is None:
                return ClaimResultDTO.failed(ClaimError.NOT_FOUND, "Snap not found")

            existing = await self.snap_repository.get_claim(snap_id, claimer)
            if existing is not None and existing.status == ClaimStatus.IN_DOUBT:
                return await self._resume(snap, existing)

            if snap.status != SnapStatus.ACTIVE:
                return ClaimResultDTO.failed(
                    ClaimError.NOT_ACTIVE, "Snap is no longer active"
                )
            if snap.is_exhausted:
                return ClaimResultDTO.failed(ClaimError.EXHAUSTED, "Snap is empty")
            if existing is not None:
                return ClaimResultDTO.failed(
                    ClaimError.ALREADY_CLAIMED, "Already claimed"
                )

            amount = next_claim_amount(snap, self._rng)
            claim = SnapClaim(snap_id=snap.id, claimer_address=claimer, amount=amount)
            result = await self.snap_repository.reserve_claim(
                snap.version, snap.reserve(amount), claim
            )

            if result.code == WriteCode.APPLIED:
                return await self._settle(snap, claim)
            if result.code == WriteCode.MISSING:
                return ClaimResultDTO.failed(ClaimError.NOT_FOUND, "Snap not found")
            if result.code == WriteCode.NOT_ACTIVE:
                return ClaimResultDTO.failed(
                    ClaimError.NOT_ACTIVE, "Snap is no longer active"
                )
            if result.code == WriteCode.DUPLICATE:
                # Lost the race to another request from the same address.
                return ClaimResultDTO.failed(
                    ClaimError.ALREADY_CLAIMED, "Already claimed"
                )
            # STALE: someone else claimed in between; re-read and recompute.

        raise SnapContentionError(f"Snap {snap_id} stayed contended while claiming")

    async def _resume(self, snap: Snap, claim: SnapClaim) -> ClaimResultDTO:
        code, reserved = await self.snap_repository.transition_claim(
            claim, ClaimStatus.IN_DOUBT, claim.with_status(ClaimStatus.RESERVED)
        )
        if code != WriteCode.APPLIED or reserved is None:
            return ClaimResultDTO.failed(ClaimError.ALREADY_CLAIMED, "Already claimed")
        logger.info("Resuming in-doubt claim %s on snap %s", claim.id, snap.id)
        return await self._settle(snap, reserved)

    async def _settle(self, snap: Snap, claim: SnapClaim) -> ClaimResultDTO:
        request = TransferRequest(
            to_address=claim.claimer_address,
            amount=claim.amount,
            token_symbol=snap.token_symbol,
        )
        try:
            receipt = await self.transfer_client.transfer(
                request, idempotency_key=str(claim.id)
            )
        except TransferRejectedError as e:
            logger.warning("Transfer for claim %s rejected: %s", claim.id, e)
            try:
                await self._release(claim)
            except (Exception, asyncio.CancelledError):
                # Resuming the claim repeats the rejected transfer and the release.
                logger.error("Release of claim %s failed; marking in doubt", claim.id)
                await asyncio.shield(self._mark_in_doubt(claim))
                raise
            return ClaimResultDTO.failed(
                ClaimError.TRANSFER_FAILED, f"Transfer failed: {e}"
            )
        except TransferOutcomeUnknownError as e:
            logger.error("Transfer for claim %s in doubt: %s", claim.id, e)
            await self._mark_in_doubt(claim)
            return ClaimResultDTO.failed(
                ClaimError.TRANSFER_FAILED,
                "Transfer outcome unknown; claim again to retry",
            )
        except (Exception, asyncio.CancelledError):
            # The request may already be on the wire; never roll back here.
            await asyncio.shield(self._mark_in_doubt(claim))
            raise

        confirmed = claim.confirm(receipt.tx_hash)
        code, _ = await self.snap_repository.transition_claim(
            claim, ClaimStatus.RESERVED, confirmed
        )
        if code != WriteCode.APPLIED:
            logger.error(
                "Claim %s paid in %s but could not be confirmed (code %s)",
                claim.id,
                receipt.tx_hash,
                code.name,
            )
        logger.info(
            "Snap %s claimed by %s: %d units (%s)",
            snap.id,
            claim.claimer_address,
            claim.amount,
            receipt.tx_hash,
        )
        return ClaimResultDTO(
            success=True,
            amount=format_minor_units(claim.amount, snap.decimals),
            amount_units=claim.amount,
            tx_hash=receipt.tx_hash,
        )

    async def _mark_in_doubt(self, claim: SnapClaim) -> None:
        code, _ = await self.snap_repository.transition_claim(
            claim, ClaimStatus.RESERVED, claim.with_status(ClaimStatus.IN_DOUBT)
        )
        if code != WriteCode.APPLIED:
            logger.error("Could not mark claim %s in doubt (code %s)", claim.id, code.name)

    async def _release(self, claim: SnapClaim) -> None:
        """Give the reserved amount and slot back to the snap."""
        for _ in range(self.max_attempts):
            snap = await self.snap_repository.get_by_id(claim.snap_id)
            if snap is None:
                logger.error("Snap %s vanished while releasing claim %s", claim.snap_id, claim.id)
                return
            code, _ = await self.snap_repository.release_claim(
                snap.version, snap.release(claim.amount), claim
            )
            if code == WriteCode.APPLIED:
                return
            if code != WriteCode.STALE:
                logger.warning(
                    "Release of claim %s skipped (code %s)", claim.id, code.name
                )
                return
        raise SnapContentionError(
            f"Snap {claim.snap_id} stayed contended while releasing claim {claim.id}"
        )
