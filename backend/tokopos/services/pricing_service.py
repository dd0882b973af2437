# Overview: Pure monetary calculator for sales; no I/O.

"""
Sale pricing.

Order of operations (must not change, totals are reproduced by clients):
1. item subtotal = quantity * unit price, minus the item discount
   (percentage: * (1 - d/100), fixed: - d), floored at 0
2. subtotal = sum of item subtotals
3. sale discount amount = subtotal * d/100 (percentage) or d (fixed)
4. after discount = max(0, subtotal - discount amount)
5. tax = after discount * tax rate / 100
6. total = after discount + tax
7. change = amount paid - total (negative means insufficient payment)

Intermediate values keep full Decimal precision. Rounding to 2 decimals
happens only in SaleTotals.rounded(), right before persistence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from ..money import HUNDRED, ZERO, round2, round_whole


DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_FIXED = "fixed"


@dataclass(frozen=True)
class ItemPricing:
    quantity: int
    unit_price: Decimal
    discount: Decimal = ZERO
    discount_type: str = DISCOUNT_FIXED


@dataclass(frozen=True)
class SaleTotals:
    item_subtotals: list[Decimal] = field(default_factory=list)
    subtotal: Decimal = ZERO
    discount_amount: Decimal = ZERO
    after_discount: Decimal = ZERO
    tax: Decimal = ZERO
    total: Decimal = ZERO
    amount_paid: Decimal = ZERO
    change: Decimal = ZERO

    @property
    def is_sufficient(self) -> bool:
        return self.change >= ZERO

    def rounded(self) -> "SaleTotals":
        """
        Persistence form. subtotal, after discount and total are rounded;
        discount amount and tax are derived from them so the stored row
        satisfies total == subtotal - discount_amount + tax exactly.
        """
        subtotal = round2(self.subtotal)
        after_discount = round2(self.after_discount)
        total = round2(self.total)
        amount_paid = round2(self.amount_paid)
        return SaleTotals(
            item_subtotals=[round2(v) for v in self.item_subtotals],
            subtotal=subtotal,
            discount_amount=subtotal - after_discount,
            after_discount=after_discount,
            tax=total - after_discount,
            total=total,
            amount_paid=amount_paid,
            change=amount_paid - total,
        )


def apply_discount(amount: Decimal, discount: Decimal, discount_type: str) -> Decimal:
    if discount <= ZERO:
        return amount
    if discount_type == DISCOUNT_PERCENTAGE:
        return amount * (1 - discount / HUNDRED)
    return amount - discount


def item_subtotal(item: ItemPricing) -> Decimal:
    gross = item.quantity * item.unit_price
    return max(ZERO, apply_discount(gross, item.discount, item.discount_type))


def discount_amount(subtotal: Decimal, discount: Decimal, discount_type: str) -> Decimal:
    if discount <= ZERO:
        return ZERO
    if discount_type == DISCOUNT_PERCENTAGE:
        return subtotal * (discount / HUNDRED)
    return discount


def price_sale(
    items: Iterable[ItemPricing],
    *,
    discount: Decimal = ZERO,
    discount_type: str = DISCOUNT_FIXED,
    tax_rate: Decimal = ZERO,
    amount_paid: Decimal = ZERO,
) -> SaleTotals:
    item_subtotals = [item_subtotal(item) for item in items]
    subtotal = sum(item_subtotals, ZERO)
    sale_discount = discount_amount(subtotal, discount, discount_type)
    after_discount = max(ZERO, subtotal - sale_discount)
    tax = after_discount * (tax_rate / HUNDRED)
    total = after_discount + tax
    return SaleTotals(
        item_subtotals=item_subtotals,
        subtotal=subtotal,
        discount_amount=sale_discount,
        after_discount=after_discount,
        tax=tax,
        total=total,
        amount_paid=amount_paid,
        change=amount_paid - total,
    )


def round_display_total(total: Decimal) -> Decimal:
    """Whole-unit total the cashier sees and collects in cash."""
    return round_whole(total)
