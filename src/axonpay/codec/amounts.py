from __future__ import annotations

import random
from decimal import Decimal, InvalidOperation, localcontext
from typing import Final, Mapping, Optional

from ..domain.snap.entities import Snap, SnapMode


TOKEN_DECIMALS: Final[Mapping[str, int]] = {
    "USDC": 6,
    "USDT": 6,
    "XSGD": 6,
    "IDRX": 18,
    "MYRC": 18,
    "WETH": 18,
    "cbETH": 18,
}

# Wide enough that scaleb never rounds realistic 18-decimal amounts.
_PRECISION: Final[int] = 80


def token_decimals(symbol: str) -> int:
    try:
        return TOKEN_DECIMALS[symbol]
    except KeyError:
        raise ValueError(f"Unsupported token: {symbol}") from None


def to_minor_units(amount: str | Decimal, decimals: int) -> int:
    """
    Convert a decimal amount ("12.5") to integer minor units (12_500_000 for 6
    decimals). Rejects non-finite values and values with more fractional digits
    than the token supports; never rounds.
    """
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Invalid amount: {amount!r}") from None
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {amount} has more than {decimals} decimal places")
    return int(scaled)


def format_minor_units(units: int, decimals: int) -> str:
    """Inverse of to_minor_units, normalized ("25", "0.5")."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        value = Decimal(units).scaleb(-decimals)
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def next_claim_amount(snap: Snap, rng: Optional[random.Random] = None) -> int:
    """
    Minor units the next claimant of `snap` receives.

    The last open slot always takes exactly what remains, so the claims of a
    snap sum to `total_amount` whatever happened before. Equal mode pays
    `total // snappers_count`; Random mode draws uniformly from
    `[1, min(2 * remaining // slots, remaining - (slots - 1))]`, which keeps at
    least one unit for every slot still open.
    """
    slots = snap.remaining_slots
    remaining = snap.remaining_amount
    if slots <= 0 or remaining <= 0:
        raise ValueError("Snap has nothing left to claim")
    if slots == 1:
        return remaining

    if snap.mode == SnapMode.EQUAL:
        share = snap.total_amount // snap.snappers_count
        return min(share, remaining - (slots - 1))

    upper = min(2 * remaining // slots, remaining - (slots - 1))
    upper = max(upper, 1)
    return (rng or random.SystemRandom()).randint(1, upper)
