"""Shared Pydantic serializers used across DTOs/entities."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import field_serializer


class DatetimeSerializerMixin:
    """Serialize common datetime fields consistently."""

    @field_serializer("created_at", check_fields=False)
    def serialize_created_at(self, value: datetime) -> str:
        return value.isoformat()


class CommonSerializersMixin(DatetimeSerializerMixin):
    """Common field serializers shared across multiple models.

    Uses `check_fields=False` so the mixin can be used by models that don't
    declare all fields (e.g., a claim has `confirmed_at` but no `updated_at`).
    """

    @field_serializer("id", check_fields=False)
    def serialize_id(self, value: UUID | str) -> str:
        return str(value)

    @field_serializer("updated_at", check_fields=False)
    def serialize_updated_at(self, value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

    @field_serializer("claimed_at", check_fields=False)
    def serialize_claimed_at(self, value: datetime) -> str:
        return value.isoformat()

    @field_serializer("confirmed_at", check_fields=False)
    def serialize_confirmed_at(self, value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None
