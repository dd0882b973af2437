from __future__ import annotations

from ..extensions import db
from ..money import format_money
from ..time_utils import to_utc_z


class Product(db.Model):
    """
    Product master data.

    Stock is mutated only by the stock ledger (sale creation/cancellation)
    using atomic conditional UPDATE statements, never by read-modify-write.
    min_stock is advisory (low-stock display), not enforced.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("min_stock >= 0", name="ck_products_min_stock_non_negative"),
        db.CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        db.Index("ix_products_category_name", "category", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(64), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(128), nullable=False)

    price = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=10)

    primary_image = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.min_stock

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "price": format_money(self.price),
            "stock": self.stock,
            "minStock": self.min_stock,
            "primaryImage": self.primary_image,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }

    def to_pos_dict(self) -> dict:
        """Slim shape the POS terminal caches."""
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "category": self.category,
            "price": format_money(self.price),
            "stock": self.stock,
            "primaryImage": self.primary_image,
        }
