"""
Sales Service - atomic sale creation and cancellation

A sale moves Validating -> Pricing -> Persisting -> Committed, or ends in
Aborted with the whole transaction rolled back. Nothing from an aborted sale
is observable: no Sale row, no SaleItem rows, no stock change, no consumed
sale number.

Public operations return a SaleResult instead of raising business errors;
rollback has already happened by the time the caller sees the error.
Unexpected exceptions still propagate (after rollback).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Union

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..errors import (
    AlreadyCancelled,
    EmptyCart,
    InsufficientPayment,
    InvalidItemData,
    InvalidSaleData,
    InvalidSaleState,
    MissingPayment,
    SaleError,
    SaleNotFound,
)
from ..extensions import db
from ..models import Sale, SaleItem, User
from ..models.sales import DISCOUNT_TYPES, PAYMENT_METHODS, SALE_STATUSES
from ..money import HUNDRED, MAX_AMOUNT, ZERO, format_money, round2, to_decimal
from ..time_utils import parse_iso_datetime, store_day_end_utc, utcnow
from ..validation import ValidationError
from .concurrency import RETRYABLE_ERRORS, begin_write_transaction, lock_for_update, run_with_retry
from .pricing_service import ItemPricing, SaleTotals, price_sale
from .sale_number_service import next_sale_number
from .stock_service import check_available, reserve_and_decrement, restore


INVALID_ITEM_MESSAGE = (
    "Invalid item data: productId or productName (name), quantity, and unitPrice are required"
)

# Largest value an Integer column holds on every supported database
MAX_INT = 2**31 - 1


class SaleNumberTaken(Exception):
    """Another transaction committed the same sale number first."""


# A lost race on the sale number unique constraint is safe to retry
CREATE_RETRYABLE_ERRORS = RETRYABLE_ERRORS + (SaleNumberTaken,)


def is_sale_number_conflict(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return "uq_sales_sale_number" in message or "sales.sale_number" in message


@dataclass(frozen=True)
class InventoryLine:
    """Cart line tied to a product; decrements stock."""
    product_id: int
    quantity: int
    unit_price: Decimal
    discount: Decimal = ZERO
    discount_type: str = "fixed"


@dataclass(frozen=True)
class AdHocLine:
    """Non-inventory charge (plastic bag, service fee); never touches stock."""
    name: str
    quantity: int
    unit_price: Decimal
    discount: Decimal = ZERO
    discount_type: str = "fixed"
    sku: str | None = None


CartLine = Union[InventoryLine, AdHocLine]


@dataclass(frozen=True)
class SaleRequest:
    lines: list[CartLine]
    amount_paid: Decimal
    discount: Decimal = ZERO
    discount_type: str = "fixed"
    tax_rate: Decimal = ZERO
    payment_method: str = "cash"
    customer_id: int | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_email: str | None = None
    notes: str | None = None

    def stock_requirements(self) -> dict[int, int]:
        """Total quantity per product id, in first-seen order."""
        requirements: dict[int, int] = {}
        for line in self.lines:
            if isinstance(line, InventoryLine):
                requirements[line.product_id] = requirements.get(line.product_id, 0) + line.quantity
        return requirements


@dataclass
class SaleResult:
    sale: Sale | None = None
    error: SaleError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class _PricedSale:
    request: SaleRequest
    totals: SaleTotals
    # (product name, product sku) snapshot per line
    labels: list[tuple[str, str | None]] = field(default_factory=list)


# -------------------------
# Validating
# -------------------------

def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_quantity(value: Any) -> int:
    try:
        quantity = to_decimal(value)
    except ValueError:
        raise InvalidItemData(INVALID_ITEM_MESSAGE, details={"quantity": value})
    if quantity <= ZERO or quantity != quantity.to_integral_value():
        raise InvalidItemData(
            "Item quantity must be a positive whole number",
            details={"quantity": value},
        )
    if quantity > MAX_INT:
        raise InvalidItemData(
            f"Item quantity cannot exceed {MAX_INT}",
            details={"quantity": value},
        )
    return int(quantity)


def _parse_id(value: Any) -> int:
    """Positive row id. Raises ValueError."""
    if isinstance(value, bool):
        raise ValueError(value)
    try:
        ident = int(value)
    except TypeError:
        raise ValueError(value)
    if not 0 < ident <= MAX_INT:
        raise ValueError(value)
    return ident


def _parse_amount(value: Any) -> Decimal:
    """Non-negative money amount rounded to cents. Raises ValueError."""
    try:
        amount = to_decimal(value)
    except ValueError:
        raise ValueError("must be a number")
    if amount < ZERO:
        raise ValueError("cannot be negative")
    # Bound before quantizing; quantize fails past the context precision
    if amount > MAX_AMOUNT:
        raise ValueError(f"cannot exceed {format_money(MAX_AMOUNT)}")
    return round2(amount)


def _parse_item_discount(item: dict) -> tuple[Decimal, str]:
    discount_type = item.get("discountType") or "fixed"
    if discount_type not in DISCOUNT_TYPES:
        raise InvalidItemData(f"Invalid item discount type: {discount_type}")
    raw = item.get("discount")
    if _blank(raw):
        return ZERO, discount_type
    try:
        discount = _parse_amount(raw)
    except ValueError as exc:
        raise InvalidItemData(f"Item discount {exc}", details={"discount": raw})
    return discount, discount_type


def resolve_line(item: Any) -> CartLine:
    """Turn one wire item into an InventoryLine or AdHocLine."""
    if not isinstance(item, dict):
        raise InvalidItemData(INVALID_ITEM_MESSAGE)

    product_id = item.get("productId")
    name = item.get("productName") or item.get("name")
    if (_blank(product_id) and _blank(name)) or _blank(item.get("quantity")) or item.get("unitPrice") is None:
        raise InvalidItemData(INVALID_ITEM_MESSAGE, details={"item": item})

    quantity = _parse_quantity(item["quantity"])
    try:
        unit_price = _parse_amount(item["unitPrice"])
    except ValueError as exc:
        raise InvalidItemData(f"Item unit price {exc}", details={"unitPrice": item["unitPrice"]})
    discount, discount_type = _parse_item_discount(item)

    if not _blank(product_id):
        try:
            product_id = _parse_id(product_id)
        except ValueError:
            raise InvalidItemData(f"Invalid product id: {product_id}", details={"productId": product_id})
        return InventoryLine(
            product_id=product_id,
            quantity=quantity,
            unit_price=unit_price,
            discount=discount,
            discount_type=discount_type,
        )

    return AdHocLine(
        name=str(name).strip(),
        quantity=quantity,
        unit_price=unit_price,
        discount=discount,
        discount_type=discount_type,
        sku=item.get("productSku") or item.get("sku"),
    )


def _optional_text(payload: dict, key: str) -> str | None:
    value = payload.get(key)
    if _blank(value):
        return None
    return str(value).strip()


def parse_sale_request(payload: Any) -> SaleRequest:
    """
    Validate a POST /api/pos/sales body.

    Raises MissingPayment, EmptyCart, InvalidItemData or InvalidSaleData.
    """
    if not isinstance(payload, dict):
        raise InvalidSaleData("Request body must be a JSON object")

    raw_paid = payload.get("amountPaid")
    try:
        amount_paid = None if _blank(raw_paid) else to_decimal(raw_paid)
    except ValueError:
        amount_paid = None
    if amount_paid is not None and amount_paid > MAX_AMOUNT:
        raise InvalidSaleData(
            f"Amount paid cannot exceed {format_money(MAX_AMOUNT)}",
            details={"amount_paid": raw_paid},
        )
    if amount_paid is not None and amount_paid > ZERO:
        amount_paid = round2(amount_paid)
    if amount_paid is None or amount_paid <= ZERO:
        raise MissingPayment(
            "Amount paid is required and must be greater than 0",
            details={"amount_paid": raw_paid},
        )

    items = payload.get("items")
    if not items:
        raise EmptyCart("At least one item is required")
    if not isinstance(items, list):
        raise InvalidItemData("items must be a list")
    lines = [resolve_line(item) for item in items]

    discount_type = payload.get("discountType") or "fixed"
    if discount_type not in DISCOUNT_TYPES:
        raise InvalidSaleData(f"Invalid discount type: {discount_type}")

    payment_method = payload.get("paymentMethod") or "cash"
    if payment_method not in PAYMENT_METHODS:
        raise InvalidSaleData(f"Invalid payment method: {payment_method}")

    try:
        discount = ZERO if _blank(payload.get("discount")) else to_decimal(payload["discount"])
        tax_rate = ZERO if _blank(payload.get("taxRate")) else to_decimal(payload["taxRate"])
    except ValueError as exc:
        raise InvalidSaleData(str(exc))
    if discount < ZERO:
        raise InvalidSaleData("Discount cannot be negative")
    if discount > MAX_AMOUNT:
        raise InvalidSaleData(f"Discount cannot exceed {format_money(MAX_AMOUNT)}")
    if tax_rate < ZERO or tax_rate > HUNDRED:
        raise InvalidSaleData("Tax rate must be between 0 and 100", details={"tax_rate": str(tax_rate)})
    tax_rate = round2(tax_rate)

    customer_id = payload.get("customerId")
    if not _blank(customer_id):
        try:
            customer_id = _parse_id(customer_id)
        except ValueError:
            raise InvalidSaleData(f"Invalid customer id: {customer_id}", details={"customer_id": customer_id})
    else:
        customer_id = None

    return SaleRequest(
        lines=lines,
        amount_paid=amount_paid,
        discount=discount,
        discount_type=discount_type,
        tax_rate=tax_rate,
        payment_method=payment_method,
        customer_id=customer_id,
        customer_name=_optional_text(payload, "customerName"),
        customer_phone=_optional_text(payload, "customerPhone"),
        customer_email=_optional_text(payload, "customerEmail"),
        notes=_optional_text(payload, "notes"),
    )


# -------------------------
# Pricing
# -------------------------

def _check_customer(customer_id: int | None) -> None:
    if customer_id is not None and db.session.get(User, customer_id) is None:
        raise InvalidSaleData(
            f"Customer with ID {customer_id} not found",
            details={"customer_id": customer_id},
        )


def _price(request: SaleRequest) -> _PricedSale:
    _check_customer(request.customer_id)
    products = {
        product_id: check_available(product_id, quantity)
        for product_id, quantity in request.stock_requirements().items()
    }

    labels = []
    for line in request.lines:
        if isinstance(line, InventoryLine):
            product = products[line.product_id]
            labels.append((product.name, product.sku))
        else:
            labels.append((line.name, line.sku))

    totals = price_sale(
        [
            ItemPricing(
                quantity=line.quantity,
                unit_price=line.unit_price,
                discount=line.discount,
                discount_type=line.discount_type,
            )
            for line in request.lines
        ],
        discount=request.discount,
        discount_type=request.discount_type,
        tax_rate=request.tax_rate,
        amount_paid=request.amount_paid,
    )
    if totals.subtotal > MAX_AMOUNT or totals.total > MAX_AMOUNT:
        raise InvalidSaleData(
            f"Sale total cannot exceed {format_money(MAX_AMOUNT)}",
            details={"subtotal": str(totals.subtotal)},
        )
    if not totals.is_sufficient:
        raise InsufficientPayment(format_money(request.amount_paid), format_money(totals.total))

    return _PricedSale(request=request, totals=totals, labels=labels)


# -------------------------
# Persisting
# -------------------------

def _persist(priced: _PricedSale, cashier_id: int) -> Sale:
    request = priced.request
    totals = priced.totals.rounded()

    sale = Sale(
        sale_number=next_sale_number(),
        customer_id=request.customer_id,
        customer_name=request.customer_name,
        customer_phone=request.customer_phone,
        customer_email=request.customer_email,
        cashier_id=cashier_id,
        subtotal=totals.subtotal,
        discount=totals.discount_amount,
        discount_type=request.discount_type,
        tax=totals.tax,
        tax_rate=request.tax_rate,
        total=totals.total,
        amount_paid=totals.amount_paid,
        change=totals.change,
        payment_method=request.payment_method,
        status="completed",
        notes=request.notes,
        sale_date=utcnow(),
    )

    for line, (name, sku), subtotal in zip(request.lines, priced.labels, totals.item_subtotals):
        sale.items.append(
            SaleItem(
                product_id=line.product_id if isinstance(line, InventoryLine) else None,
                product_name=name,
                product_sku=sku,
                quantity=line.quantity,
                unit_price=line.unit_price,
                discount=line.discount,
                discount_type=line.discount_type,
                subtotal=subtotal,
            )
        )

    db.session.add(sale)

    for product_id, quantity in request.stock_requirements().items():
        reserve_and_decrement(product_id, quantity)

    db.session.flush()
    return sale


def create_sale(payload: Any, acting_user_id: int) -> SaleResult:
    """
    Validate, price and persist a sale in one transaction.

    Returns SaleResult(sale=...) on commit or SaleResult(error=...) after a
    full rollback.
    """
    try:
        request = parse_sale_request(payload)
    except SaleError as exc:
        return SaleResult(error=exc)

    def _op() -> Sale:
        begin_write_transaction()
        priced = _price(request)
        try:
            sale = _persist(priced, acting_user_id)
            db.session.commit()
        except IntegrityError as exc:
            if is_sale_number_conflict(exc):
                raise SaleNumberTaken(str(exc.orig)) from exc
            raise
        return sale

    try:
        sale = run_with_retry(_op, retry_on=CREATE_RETRYABLE_ERRORS)
    except SaleError as exc:
        db.session.rollback()
        current_app.logger.info("Sale rejected: %s", exc.message)
        return SaleResult(error=exc)
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Sale %s created (total %s)", sale.sale_number, format_money(sale.total))
    return SaleResult(sale=sale)


def _append_cancel_note(notes: str | None, reason: str | None) -> str | None:
    if not reason:
        return notes
    line = f"Cancelled: {reason}"
    return f"{notes}\n{line}" if notes else line


def cancel_sale(sale_id: int, reason: str | None = None) -> SaleResult:
    """
    Cancel a completed sale and put its stock back.

    Only the sale's own row and its products are locked. Items whose product
    was deleted after the sale are skipped.
    """
    def _op() -> Sale:
        begin_write_transaction()
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
        if not sale:
            raise SaleNotFound(sale_id)
        if sale.status == "cancelled":
            raise AlreadyCancelled(sale.sale_number)
        if sale.status != "completed":
            raise InvalidSaleState(
                f"Cannot cancel sale with status {sale.status}",
                details={"sale_number": sale.sale_number, "status": sale.status},
            )

        for item in sale.items:
            if item.product_id is None:
                continue
            if not restore(item.product_id, item.quantity):
                current_app.logger.warning(
                    "Sale %s: product %s no longer exists, stock not restored",
                    sale.sale_number, item.product_id,
                )

        sale.status = "cancelled"
        sale.notes = _append_cancel_note(sale.notes, reason)
        db.session.commit()
        return sale

    try:
        sale = run_with_retry(_op)
    except SaleError as exc:
        db.session.rollback()
        return SaleResult(error=exc)
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Sale %s cancelled", sale.sale_number)
    return SaleResult(sale=sale)


# -------------------------
# Read side
# -------------------------

def get_sale(sale_id: int) -> Sale | None:
    return db.session.get(Sale, sale_id)


def _end_filter(value: str):
    value = value.strip()
    # A bare date includes the whole store-local day
    if len(value) == 10:
        return Sale.sale_date < store_day_end_utc(date.fromisoformat(value))
    return Sale.sale_date <= parse_iso_datetime(value)


def list_sales(
    *,
    page: int = 1,
    limit: int = 10,
    start_date: str | None = None,
    end_date: str | None = None,
    status: str | None = None,
    cashier_id: int | None = None,
    search: str | None = None,
) -> dict:
    """
    Paginated sale history, newest first.

    Dates are ISO-8601; a date-only end bound covers that whole day in the
    store's timezone. `search` matches sale number, customer name or phone.
    """
    q = db.session.query(Sale)

    try:
        if start_date:
            q = q.filter(Sale.sale_date >= parse_iso_datetime(start_date))
        if end_date:
            q = q.filter(_end_filter(end_date))
    except ValueError:
        raise ValidationError("startDate/endDate must be ISO-8601 dates")

    if status:
        if status not in SALE_STATUSES:
            raise ValidationError(f"Invalid status: {status}")
        q = q.filter(Sale.status == status)
    if cashier_id is not None:
        q = q.filter(Sale.cashier_id == cashier_id)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(
            Sale.sale_number.ilike(like),
            Sale.customer_name.ilike(like),
            Sale.customer_phone.ilike(like),
        ))

    total = q.count()
    sales = (
        q.order_by(Sale.sale_date.desc(), Sale.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "sales": [s.to_dict() for s in sales],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }
