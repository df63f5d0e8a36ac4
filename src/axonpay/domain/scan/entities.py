"""Scan domain entities: Merchant."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from ..shared.serializers import CommonSerializersMixin


class Merchant(CommonSerializersMixin, BaseModel):
    """Merchant registered in the directory under an application QR prefix."""

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=100)
    wallet_address: str
    qr_prefix: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
