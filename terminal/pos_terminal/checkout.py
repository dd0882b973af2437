"""
Checkout on the terminal.

Totals here follow the backend's order of operations (subtotal, sale
discount, tax on the discounted amount) so the cashier sees what the
backend will charge. The display total is rounded to whole currency units
for cash handling; it is presentation only. The backend's 2-decimal total
is authoritative, so the amount the terminal asks for is never below the
exact total.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP
from typing import Any

from .cart import Cart, to_decimal
from .errors import CheckoutError, TerminalError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")
UNIT = Decimal("1")

PAYMENT_METHODS = ("cash", "card", "digital_wallet", "bank_transfer")


@dataclass(frozen=True)
class PosSettings:
    plastic_bag_small_price: Decimal = Decimal("200")
    plastic_bag_large_price: Decimal = Decimal("500")
    tax_rate: Decimal = Decimal("11")
    default_discount: Decimal = ZERO
    enable_tax: bool = True
    enable_discount: bool = True
    store: dict = field(default_factory=dict)

    @property
    def effective_tax_rate(self) -> Decimal:
        return self.tax_rate if self.enable_tax else ZERO

    @property
    def effective_discount(self) -> Decimal:
        return self.default_discount if self.enable_discount else ZERO

    @classmethod
    def from_api(cls, settings: dict | None) -> "PosSettings":
        """Build from GET /api/settings data ({key: {value, ...}})."""
        settings = settings or {}
        defaults = cls()

        def value(key: str, default: Any) -> Any:
            entry = settings.get(key)
            if not isinstance(entry, dict) or entry.get("value") is None:
                return default
            return entry["value"]

        return cls(
            plastic_bag_small_price=to_decimal(value("pos.plastic_bag_small_price", defaults.plastic_bag_small_price)),
            plastic_bag_large_price=to_decimal(value("pos.plastic_bag_large_price", defaults.plastic_bag_large_price)),
            tax_rate=to_decimal(value("pos.tax_rate", defaults.tax_rate)),
            default_discount=to_decimal(value("pos.default_discount", defaults.default_discount)),
            enable_tax=value("pos.enable_tax", True) is not False,
            enable_discount=value("pos.enable_discount", True) is not False,
            store={
                "name": value("store.name", ""),
                "address": value("store.address", ""),
                "phone": value("store.phone", ""),
                "email": value("store.email", ""),
            },
        )

    def bag_price(self, size: str) -> Decimal:
        return self.plastic_bag_small_price if size == "small" else self.plastic_bag_large_price


@dataclass(frozen=True)
class DisplayTotals:
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    # Full precision, same as the backend computes
    total: Decimal
    # Whole currency units, what the cashier sees
    display_total: Decimal

    @property
    def amount_due(self) -> Decimal:
        """Smallest payment the backend will accept, never below the display total."""
        return max(self.display_total, self.total.quantize(CENT, rounding=ROUND_CEILING))


@dataclass(frozen=True)
class CheckoutResult:
    sale: dict
    totals: DisplayTotals
    amount_paid: Decimal
    change: Decimal


def compute_display_totals(cart: Cart, settings: PosSettings) -> DisplayTotals:
    subtotal = cart.subtotal()
    discount = subtotal * (settings.effective_discount / HUNDRED) if settings.effective_discount > ZERO else ZERO
    after_discount = max(ZERO, subtotal - discount)
    tax = after_discount * (settings.effective_tax_rate / HUNDRED)
    total = after_discount + tax
    return DisplayTotals(
        subtotal=subtotal,
        discount=discount,
        tax=tax,
        total=total,
        display_total=total.quantize(UNIT, rounding=ROUND_HALF_UP),
    )


def precheck_cash(amount: Any, totals: DisplayTotals) -> Decimal:
    """
    Advisory check before submitting a cash sale. Returns the change.

    Raises CheckoutError when the amount is missing, not a number, or
    below the amount due.
    """
    try:
        paid = to_decimal(amount)
    except (ArithmeticError, ValueError, TypeError):
        raise CheckoutError("Insufficient cash amount!")
    if not paid.is_finite() or paid < totals.amount_due:
        raise CheckoutError("Insufficient cash amount!")
    return paid - totals.amount_due


def plastic_bag_notes(cart: Cart) -> str | None:
    bags = [line for line in cart if line.is_plastic_bag]
    if not bags:
        return None
    return "Kantong plastik: " + ", ".join(f"{line.name} ({line.quantity})" for line in bags)


def build_sale_request(cart: Cart, settings: PosSettings, payment_method: str, amount_paid: Any) -> dict:
    """
    Body for POST /api/pos/sales.

    Only catalogue products carry a productId; weighed goods and plastic
    bags go as ad-hoc lines and never touch stock.
    """
    items = []
    for line in cart:
        items.append({
            "productId": line.product_id if line.is_inventory else None,
            "productName": line.name,
            "productSku": line.sku,
            "quantity": line.quantity,
            "unitPrice": str(line.price),
            "discount": 0,
            "discountType": "fixed",
        })

    return {
        "items": items,
        "discount": str(settings.effective_discount),
        "discountType": "percentage",
        "taxRate": str(settings.effective_tax_rate),
        "paymentMethod": payment_method,
        "amountPaid": str(to_decimal(amount_paid)),
        "notes": plastic_bag_notes(cart),
    }


class Checkout:
    """Submits the session's cart to the backend."""

    def __init__(self, session, client):
        self.session = session
        self.client = client

    def totals(self) -> DisplayTotals:
        return compute_display_totals(self.session.cart, self.session.pos_settings)

    def submit(self, payment_method: str = "cash", amount_paid: Any = None) -> CheckoutResult:
        """
        Pre-check and submit the sale.

        Cash sales need `amount_paid`; other methods charge the amount due.
        On success the local stock cache is updated and the cart cleared. On
        any failure the cart is left untouched and a TerminalError is raised.
        """
        cart = self.session.cart
        if cart.is_empty:
            raise CheckoutError("Cart is empty!")
        if payment_method not in PAYMENT_METHODS:
            raise CheckoutError(f"Unknown payment method: {payment_method}")

        totals = self.totals()
        if payment_method == "cash":
            if amount_paid is None:
                raise CheckoutError("Insufficient cash amount!")
            change = precheck_cash(amount_paid, totals)
            paid = to_decimal(amount_paid)
        else:
            paid = totals.amount_due
            change = ZERO

        request = build_sale_request(cart, self.session.pos_settings, payment_method, paid)
        try:
            response = self.client.create_sale(request)
        except TerminalError as exc:
            logger.warning("Sale not created: %s", exc)
            raise

        sold: dict[int, int] = {}
        for line in cart:
            if line.is_inventory:
                sold[line.product_id] = sold.get(line.product_id, 0) + line.quantity
        self.session.apply_sold_stock(sold)
        cart.clear()

        sale = response.get("data") or {}
        logger.info("Sale %s completed", sale.get("saleNumber"))
        return CheckoutResult(sale=sale, totals=totals, amount_paid=paid, change=change)
