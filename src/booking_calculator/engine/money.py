from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return default
    try:
        result = Decimal(str(value).strip().replace(",", "."))
    except (InvalidOperation, ValueError, TypeError):
        return default
    if not result.is_finite():
        return default
    return result


def quantize_money(value: Decimal) -> Decimal:
    """Round to the currency minor unit using half-up rounding."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(value: Decimal, currency: str = "PLN") -> str:
    # ASCII-friendly currency suffix to avoid encoding issues across terminals.
    return f"{quantize_money(to_decimal(value)):,.2f} {currency}"
