"""
Discount layer - applies a confirmed discount on top of a computed total.

Code validity (exists, active, not expired or exhausted) is decided by the
discount service before a Discount ever reaches this module.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from .models import Discount, DiscountKind
from .money import ZERO, quantize_money, to_decimal

HUNDRED = Decimal("100")


@dataclass
class DiscountOutcome:
    """Result of applying a discount to a total."""
    final_price: Decimal
    discount_amount: Decimal
    traces: list[str] = field(default_factory=list)


def apply_discount(total: Decimal, discount: Optional[Discount]) -> DiscountOutcome:
    """
    Apply a percentage or fixed discount, never going below zero.

    Returns the discounted price, the amount actually taken off, and
    trace messages describing what happened.
    """
    total = to_decimal(total)
    if discount is None:
        return DiscountOutcome(final_price=quantize_money(max(ZERO, total)), discount_amount=ZERO)

    traces = []
    value = to_decimal(discount.value)

    if discount.kind is DiscountKind.PERCENTAGE:
        new_price = total * (1 - value / HUNDRED)
        traces.append(f"Code {discount.code} applied {value}% discount: {total:.2f} → {new_price:.2f}")
    elif discount.kind is DiscountKind.FIXED:
        new_price = total - value
        traces.append(f"Code {discount.code} applied {value:.2f} discount: {total:.2f} → {new_price:.2f}")
    else:
        raise ValueError(f"Unhandled discount kind: {discount.kind!r}")

    if new_price < ZERO:
        traces.append(f"Code {discount.code} clamped negative price {new_price:.2f} to 0.00")
        new_price = ZERO

    final_price = quantize_money(new_price)
    return DiscountOutcome(
        final_price=final_price,
        discount_amount=quantize_money(total - final_price) if total > final_price else ZERO,
        traces=traces,
    )
