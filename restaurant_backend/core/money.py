# core/money.py

"""
MONEY & QUANTITY NORMALIZERS

Rules:
- Money is Decimal, 2dp, ROUND_HALF_UP.
- Quantities are Decimal, 3dp (portions such as 0.5 plate are legal).
- Comparisons that the engine treats as "equal" use LEDGER_AMOUNT_TOLERANCE.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings

TWOPLACES = Decimal("0.01")
THREEPLACES = Decimal("0.001")
ZERO = Decimal("0.00")


def money(v) -> Decimal:
    if v is None or v == "":
        return ZERO
    try:
        return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid money value: {v!r}") from exc


def quantity(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.000")
    if isinstance(v, bool):
        raise ValueError("quantity must be numeric")
    try:
        return Decimal(str(v)).quantize(THREEPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid quantity value: {v!r}") from exc


def tolerance() -> Decimal:
    return money(getattr(settings, "LEDGER_AMOUNT_TOLERANCE", "0.01"))


def within_tolerance(a, b) -> bool:
    return abs(money(a) - money(b)) <= tolerance()
