from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final, Iterable


HEADER_LEN: Final[int] = 4  # tag(2) + length(2)
MAX_VALUE_LEN: Final[int] = 99

# Explicit [0-9] so non-ASCII digits ("²", "٣") never count as a length.
_TWO_DIGITS = re.compile(r"[0-9]{2}")


class TlvDecodeError(ValueError):
    """Raised when a payload does not frame exactly into TLV fields."""

    def __init__(self, message: str, offset: int) -> None:
        super().__init__(f"{message} at offset {offset}")
        self.offset = offset


@dataclass(frozen=True)
class TlvField:
    tag: str
    length: int
    value: str


def decode_tlv(payload: str) -> list[TlvField]:
    """
    Split an EMVCo text payload into flat tag/length/value fields.

    Each field is `TT LL V*LL`: a two-digit tag, a two-digit decimal length and
    exactly that many characters of value. After a field the offset is always
    `offset + 4 + length`; the payload is accepted only if that walk lands on
    `len(payload)` exactly. Nested templates (e.g. tags 26-51) are framed like
    any other field and not descended into.

    Raises TlvDecodeError on the first malformed field; nothing is returned
    for a partially valid payload.
    """
    fields: list[TlvField] = []
    offset = 0
    end = len(payload)
    while offset < end:
        if end - offset < HEADER_LEN:
            raise TlvDecodeError("truncated field header", offset)
        tag = payload[offset : offset + 2]
        raw_len = payload[offset + 2 : offset + 4]
        if not _TWO_DIGITS.fullmatch(tag):
            raise TlvDecodeError(f"tag {tag!r} is not two digits", offset)
        if not _TWO_DIGITS.fullmatch(raw_len):
            raise TlvDecodeError(f"length {raw_len!r} is not two digits", offset + 2)
        length = int(raw_len)
        value_start = offset + HEADER_LEN
        if value_start + length > end:
            raise TlvDecodeError(
                f"tag {tag} declares {length} chars but only "
                f"{end - value_start} remain",
                offset,
            )
        fields.append(
            TlvField(tag=tag, length=length, value=payload[value_start : value_start + length])
        )
        offset = value_start + length
    return fields


def encode_tlv(fields: Iterable[tuple[str, str]]) -> str:
    """Frame `(tag, value)` pairs as `tag + %02d length + value`."""
    parts: list[str] = []
    for tag, value in fields:
        if not _TWO_DIGITS.fullmatch(tag):
            raise ValueError(f"tag {tag!r} is not two digits")
        if len(value) > MAX_VALUE_LEN:
            raise ValueError(f"value for tag {tag} longer than {MAX_VALUE_LEN}")
        parts.append(f"{tag}{len(value):02d}{value}")
    return "".join(parts)


def last_value(fields: Iterable[TlvField], tag: str) -> str | None:
    """Value of the last occurrence of `tag`, or None if absent or empty."""
    found: str | None = None
    for field in fields:
        if field.tag == tag:
            found = field.value
    return found or None
