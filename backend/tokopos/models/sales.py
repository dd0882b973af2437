from __future__ import annotations

from ..extensions import db
from ..money import format_money
from ..time_utils import to_utc_z, utcnow


DISCOUNT_TYPES = ("fixed", "percentage")
PAYMENT_METHODS = ("cash", "card", "digital_wallet", "bank_transfer")
SALE_STATUSES = ("pending", "completed", "cancelled", "refunded")


class Sale(db.Model):
    """
    One checkout transaction.

    Totals are computed server-side from item unit prices and stored rounded
    to 2 decimals: total = subtotal - discount + tax, where `discount` holds
    the computed discount amount (not the percentage).

    Created as `completed` in a single transaction; may later become
    `cancelled`. Never deleted.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("sale_number", name="uq_sales_sale_number"),
        db.CheckConstraint("change >= 0", name="ck_sales_change_non_negative"),
        db.CheckConstraint("tax_rate >= 0 AND tax_rate <= 100", name="ck_sales_tax_rate_range"),
        db.CheckConstraint(
            "discount_type IN ('fixed', 'percentage')", name="ck_sales_discount_type"
        ),
        db.CheckConstraint(
            "payment_method IN ('cash', 'card', 'digital_wallet', 'bank_transfer')",
            name="ck_sales_payment_method",
        ),
        db.CheckConstraint(
            "status IN ('pending', 'completed', 'cancelled', 'refunded')",
            name="ck_sales_status",
        ),
        # Composite index for status/date filtered listings and summaries
        db.Index("ix_sales_status_sale_date", "status", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number (e.g., "SALE-20261019-0001")
    sale_number = db.Column(db.String(64), nullable=False)

    customer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(64), nullable=True)
    customer_email = db.Column(db.String(255), nullable=True)

    cashier_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    subtotal = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    discount_type = db.Column(db.String(16), nullable=False, default="fixed")
    tax = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    tax_rate = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(15, 2), nullable=False)
    amount_paid = db.Column(db.Numeric(15, 2), nullable=False)
    change = db.Column(db.Numeric(15, 2), nullable=False, default=0)

    payment_method = db.Column(db.String(32), nullable=False, default="cash", index=True)
    status = db.Column(db.String(16), nullable=False, default="completed", index=True)
    notes = db.Column(db.Text, nullable=True)

    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    version_id = db.Column(db.Integer, nullable=False, default=1)

    cashier = db.relationship("User", foreign_keys=[cashier_id])
    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
        lazy="selectin",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "saleNumber": self.sale_number,
            "customerId": self.customer_id,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "customerEmail": self.customer_email,
            "cashierId": self.cashier_id,
            "subtotal": format_money(self.subtotal),
            "discount": format_money(self.discount),
            "discountType": self.discount_type,
            "tax": format_money(self.tax),
            "taxRate": format_money(self.tax_rate),
            "total": format_money(self.total),
            "amountPaid": format_money(self.amount_paid),
            "change": format_money(self.change),
            "paymentMethod": self.payment_method,
            "status": self.status,
            "notes": self.notes,
            "saleDate": to_utc_z(self.sale_date),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "cashier": self.cashier.to_public_dict() if self.cashier else None,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """
    One line of a sale. product_id is NULL for ad-hoc charges (plastic bags,
    weighed goods entered by name); those never touch stock.

    Immutable after the sale is created.
    """
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_sale_items_quantity_positive"),
        db.CheckConstraint("unit_price >= 0", name="ck_sale_items_unit_price_non_negative"),
        db.CheckConstraint("discount >= 0", name="ck_sale_items_discount_non_negative"),
        db.CheckConstraint("subtotal >= 0", name="ck_sale_items_subtotal_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)

    # Snapshot at sale time, so history survives product edits/deletes
    product_name = db.Column(db.String(255), nullable=False)
    product_sku = db.Column(db.String(64), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(15, 2), nullable=False)
    discount = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    discount_type = db.Column(db.String(16), nullable=False, default="fixed")
    subtotal = db.Column(db.Numeric(15, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "saleId": self.sale_id,
            "productId": self.product_id,
            "productName": self.product_name,
            "productSku": self.product_sku,
            "quantity": self.quantity,
            "unitPrice": format_money(self.unit_price),
            "discount": format_money(self.discount),
            "discountType": self.discount_type,
            "subtotal": format_money(self.subtotal),
            "createdAt": to_utc_z(self.created_at),
        }


class SaleNumberSequence(db.Model):
    """
    Atomic per-day sale number counter.

    WHY: "read the last sale of the day and add one" races under concurrent
    checkouts. The row for a day is incremented with a single UPDATE inside
    the sale's transaction, and sales.sale_number is unique as a backstop.
    """
    __tablename__ = "sale_number_sequences"
    __table_args__ = (
        db.UniqueConstraint("day", name="uq_sale_number_sequences_day"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    # Store-local calendar day, "YYYYMMDD"
    day = db.Column(db.String(8), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
