"""Merchant directory interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from .entities import Merchant


class MerchantDirectory(ABC):
    """Resolves application QR prefixes to registered merchants."""

    @abstractmethod
    async def lookup(self, qr_prefix: str) -> Optional[Merchant]:
        pass

    @abstractmethod
    async def register(self, merchant: Merchant) -> Merchant:
        """Raises MerchantAlreadyExistsError if the prefix is taken."""
        pass

    @abstractmethod
    async def get_all(self, skip: int = 0, limit: int = 100) -> List[Merchant]:
        pass
