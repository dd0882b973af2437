"""
Decimal helpers shared by the calculator, models and routes.

Intermediate math keeps full precision; rounding happens only when a value is
persisted (2 decimals) or shown to the cashier (whole currency units).
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")
UNIT = Decimal("1")
ZERO = Decimal("0")
HUNDRED = Decimal("100")
# Largest value a Numeric(15, 2) column holds
MAX_AMOUNT = Decimal("9999999999999.99")


def to_decimal(value: Any) -> Decimal:
    """Convert JSON-ish input (int, float, numeric string) to Decimal. Raises ValueError."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, float):
        # repr keeps the shortest round-tripping form (0.1 -> "0.1")
        value = repr(value)
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Not a number: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def round2(value: Decimal) -> Decimal:
    """Round half-up to 2 decimal places (persistence precision)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_whole(value: Decimal) -> Decimal:
    """Round half-up to whole currency units (cash display precision)."""
    return value.quantize(UNIT, rounding=ROUND_HALF_UP)


def format_money(value: Decimal | None) -> str | None:
    if value is None:
        return None
    return f"{round2(to_decimal(value)):.2f}"
