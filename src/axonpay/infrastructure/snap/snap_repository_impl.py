"""Snap repository implementation over a storage abstraction."""

from __future__ import annotations

from typing import Any, List, Optional

from ...domain.errors import SnapAlreadyExistsError
from ...domain.snap.entities import ClaimStatus, Snap, SnapClaim
from ...domain.snap.repositories import ReserveResult, SnapRepository, WriteCode
from ..storage import KeyValueStore


def _parse_result(result: Any) -> tuple[WriteCode, Optional[str]]:
    # result is a list-like: [code, json_or_empty]
    code = int(result[0]) if result and result[0] not in (None, "") else 0
    payload = result[1] if len(result) > 1 and result[1] not in (None, "") else None
    return WriteCode(code), payload


class SnapRepositoryImpl(SnapRepository):
    """Snap repository using a KeyValueStore.

    Keys:
      - snap:{id}                         -> Snap JSON
      - snap_claim:{snap_id}:{claimer}    -> SnapClaim JSON
      - snap_claims:{snap_id}             -> sorted set of claimers by claim time
      - snaps:by_sender:{sender}          -> sorted set of snap ids by creation
      - snaps:all                         -> sorted set of snap ids by creation
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    @staticmethod
    def _snap_key(snap_id: str) -> str:
        return f"snap:{snap_id}"

    @staticmethod
    def _claim_key(snap_id: str, claimer_address: str) -> str:
        return f"snap_claim:{snap_id}:{claimer_address}"

    @staticmethod
    def _claims_index_key(snap_id: str) -> str:
        return f"snap_claims:{snap_id}"

    @staticmethod
    def _sender_index_key(sender_address: str) -> str:
        return f"snaps:by_sender:{sender_address}"

    async def create(self, snap: Snap) -> Snap:
        result = await self.store.run_script(
            "create_snap",
            keys=[
                self._snap_key(snap.id),
                self._sender_index_key(snap.sender_address),
                "snaps:all",
            ],
            args=[snap.model_dump_json(), str(snap.created_at.timestamp()), snap.id],
        )
        code, _ = _parse_result(result)
        if code == WriteCode.DUPLICATE:
            raise SnapAlreadyExistsError(f"Snap {snap.id} already exists")
        return snap

    async def get_by_id(self, snap_id: str) -> Optional[Snap]:
        data = await self.store.get(self._snap_key(snap_id))
        if not data:
            return None
        return Snap.model_validate_json(data)

    async def get_by_sender(
        self, sender_address: str, skip: int = 0, limit: int = 100
    ) -> List[Snap]:
        ids: list[str] = await self.store.zrevrange(
            self._sender_index_key(sender_address), skip, skip + limit - 1
        )
        snaps: List[Snap] = []
        for snap_id in ids:
            snap = await self.get_by_id(snap_id)
            if snap:
                snaps.append(snap)
        return snaps

    async def get_claim(
        self, snap_id: str, claimer_address: str
    ) -> Optional[SnapClaim]:
        data = await self.store.get(self._claim_key(snap_id, claimer_address))
        if not data:
            return None
        return SnapClaim.model_validate_json(data)

    async def get_claims(self, snap_id: str) -> List[SnapClaim]:
        claimers: list[str] = await self.store.zrange(
            self._claims_index_key(snap_id), 0, -1
        )
        claims: List[SnapClaim] = []
        for claimer in claimers:
            claim = await self.get_claim(snap_id, claimer)
            if claim:
                claims.append(claim)
        return claims

    async def count_claims(self, snap_id: str) -> int:
        return await self.store.zcard(self._claims_index_key(snap_id))

    async def reserve_claim(
        self, expected_version: int, next_snap: Snap, claim: SnapClaim
    ) -> ReserveResult:
        result = await self.store.run_script(
            "reserve_claim",
            keys=[
                self._snap_key(claim.snap_id),
                self._claim_key(claim.snap_id, claim.claimer_address),
                self._claims_index_key(claim.snap_id),
            ],
            args=[
                str(expected_version),
                next_snap.model_dump_json(),
                claim.model_dump_json(),
                str(claim.claimed_at.timestamp()),
                claim.claimer_address,
            ],
        )
        code, payload = _parse_result(result)
        if code == WriteCode.MISSING or payload is None:
            return ReserveResult(code=code)
        if code == WriteCode.DUPLICATE:
            return ReserveResult(
                code=code, existing_claim=SnapClaim.model_validate_json(payload)
            )
        return ReserveResult(code=code, snap=Snap.model_validate_json(payload))

    async def release_claim(
        self, expected_version: int, restored_snap: Snap, claim: SnapClaim
    ) -> tuple[WriteCode, Optional[Snap]]:
        result = await self.store.run_script(
            "release_claim",
            keys=[
                self._snap_key(claim.snap_id),
                self._claim_key(claim.snap_id, claim.claimer_address),
                self._claims_index_key(claim.snap_id),
            ],
            args=[
                str(expected_version),
                restored_snap.model_dump_json(),
                str(claim.id),
                claim.claimer_address,
            ],
        )
        code, payload = _parse_result(result)
        if code in (WriteCode.APPLIED, WriteCode.STALE) and payload is not None:
            return code, Snap.model_validate_json(payload)
        return code, None

    async def transition_claim(
        self, claim: SnapClaim, expected_status: ClaimStatus, new_claim: SnapClaim
    ) -> tuple[WriteCode, Optional[SnapClaim]]:
        result = await self.store.run_script(
            "transition_claim",
            keys=[self._claim_key(claim.snap_id, claim.claimer_address)],
            args=[str(claim.id), expected_status.value, new_claim.model_dump_json()],
        )
        code, payload = _parse_result(result)
        return code, SnapClaim.model_validate_json(payload) if payload else None

    async def compare_and_set(
        self, expected_version: int, next_snap: Snap
    ) -> tuple[WriteCode, Optional[Snap]]:
        result = await self.store.run_script(
            "compare_and_set_snap",
            keys=[self._snap_key(next_snap.id)],
            args=[str(expected_version), next_snap.model_dump_json()],
        )
        code, payload = _parse_result(result)
        return code, Snap.model_validate_json(payload) if payload else None
