"""Merchant directory implementation over a storage abstraction."""

from __future__ import annotations

from typing import List, Optional

from ...domain.errors import MerchantAlreadyExistsError
from ...domain.scan.entities import Merchant
from ...domain.scan.repositories import MerchantDirectory
from ..storage import KeyValueStore


class MerchantDirectoryImpl(MerchantDirectory):
    """Merchants keyed by their full QR prefix string (e.g. ``AXON:cafe-01``)."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    @staticmethod
    def _prefix_key(qr_prefix: str) -> str:
        return f"merchant:qr_prefix:{qr_prefix}"

    async def lookup(self, qr_prefix: str) -> Optional[Merchant]:
        data = await self.store.get(self._prefix_key(qr_prefix))
        if not data:
            return None
        return Merchant.model_validate_json(data)

    async def register(self, merchant: Merchant) -> Merchant:
        result = await self.store.run_script(
            "create_merchant",
            keys=[self._prefix_key(merchant.qr_prefix), "merchants:all"],
            args=[
                merchant.model_dump_json(),
                str(merchant.created_at.timestamp()),
                merchant.qr_prefix,
            ],
        )
        if int(result[0]) != 1:
            raise MerchantAlreadyExistsError(
                f"Merchant prefix {merchant.qr_prefix} already registered"
            )
        return merchant

    async def get_all(self, skip: int = 0, limit: int = 100) -> List[Merchant]:
        prefixes: list[str] = await self.store.zrevrange(
            "merchants:all", skip, skip + limit - 1
        )
        merchants: List[Merchant] = []
        for prefix in prefixes:
            merchant = await self.lookup(prefix)
            if merchant:
                merchants.append(merchant)
        return merchants
