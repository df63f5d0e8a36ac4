"""Classify scanned QR text into a payment intent.

Order matters and the first match wins:

1. application merchant prefix (``AXON:``)
2. raw on-chain address (``0x`` + 40 hex)
3. EMVCo/QRIS payload (starts with the ``000201`` payload format indicator)
4. anything else is invalid
"""

from __future__ import annotations

import re
from typing import Final

from ..domain.scan.intents import (
    DirectTransfer,
    Invalid,
    PaymentIntent,
    QrisMerchant,
    RegisteredMerchant,
)
from .tlv import TlvDecodeError, decode_tlv, last_value


APP_PREFIX: Final[str] = "AXON:"
EMVCO_ROOT_MARKER: Final[str] = "000201"
TAG_MERCHANT_NAME: Final[str] = "59"
TAG_TRANSACTION_AMOUNT: Final[str] = "54"

_ADDRESS = re.compile(r"0x[0-9a-fA-F]{40}")


def is_address(value: str) -> bool:
    return bool(_ADDRESS.fullmatch(value))


def classify(payload: str) -> PaymentIntent:
    """Map any string to exactly one intent. Never raises."""
    if not isinstance(payload, str):
        return Invalid(reason="payload is not text")
    if not payload:
        return Invalid(reason="empty payload")

    if payload.startswith(APP_PREFIX):
        return RegisteredMerchant(
            merchant_prefix_key=payload,
            merchant_code=payload[len(APP_PREFIX) :],
        )

    if is_address(payload):
        return DirectTransfer(recipient_address=payload)

    if payload.startswith(EMVCO_ROOT_MARKER):
        try:
            fields = decode_tlv(payload)
        except TlvDecodeError as e:
            return Invalid(reason=f"malformed QRIS payload: {e}")
        return QrisMerchant(
            raw_payload=payload,
            merchant_name=last_value(fields, TAG_MERCHANT_NAME),
            suggested_amount=last_value(fields, TAG_TRANSACTION_AMOUNT),
        )

    return Invalid(reason="unrecognized format")
