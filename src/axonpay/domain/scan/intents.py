"""Payment intents produced by classifying a scanned QR payload."""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class DirectTransfer(BaseModel):
    """Pay a raw on-chain address."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["direct_transfer"] = "direct_transfer"
    recipient_address: str


class RegisteredMerchant(BaseModel):
    """An application merchant code; needs a directory lookup to be payable."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["registered_merchant"] = "registered_merchant"
    merchant_prefix_key: str
    merchant_code: str


class QrisMerchant(BaseModel):
    """A well-formed EMVCo/QRIS merchant payload."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["qris_merchant"] = "qris_merchant"
    raw_payload: str
    merchant_name: Optional[str] = None
    suggested_amount: Optional[str] = None


class Invalid(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["invalid"] = "invalid"
    reason: str


PaymentIntent = Annotated[
    Union[DirectTransfer, RegisteredMerchant, QrisMerchant, Invalid],
    Field(discriminator="kind"),
]
