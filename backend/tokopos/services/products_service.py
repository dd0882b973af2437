# backend/tokopos/services/products_service.py
"""
Products Service

The POS terminal caches the sellable catalogue on start and searches it
locally, so listing is read-only and only returns products with stock.
Products are created by the CLI (and by product management, outside this
service); stock is never edited here.
"""
from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy import or_

from ..extensions import db
from ..models import Product
from ..money import ZERO, round2
from ..validation import ConflictError, ValidationError


def list_pos_products(
    *,
    search: str | None = None,
    category: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> dict:
    """
    In-stock products for the terminal, ordered by name.

    `search` matches name or SKU case-insensitively; `category` is exact.
    `limit` is capped by POS_PRODUCTS_MAX_LIMIT.
    """
    limit = min(limit, current_app.config.get("POS_PRODUCTS_MAX_LIMIT", 5000))
    page = max(page, 1)

    base_query = db.session.query(Product).filter(Product.stock > 0)
    if search:
        like = f"%{search.strip()}%"
        base_query = base_query.filter(or_(Product.name.ilike(like), Product.sku.ilike(like)))
    if category:
        base_query = base_query.filter(Product.category == category)

    total = base_query.count()
    products = (
        base_query.order_by(Product.name.asc(), Product.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "products": [p.to_pos_dict() for p in products],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }


def create_product(
    *,
    sku: str,
    name: str,
    category: str,
    price: Decimal,
    stock: int = 0,
    min_stock: int = 10,
    description: str | None = None,
) -> Product:
    sku = (sku or "").strip()
    name = (name or "").strip()
    if not sku or not name or not category:
        raise ValidationError("sku, name and category are required")
    if price < ZERO:
        raise ValidationError("price cannot be negative")
    if stock < 0 or min_stock < 0:
        raise ValidationError("stock and min_stock cannot be negative")

    if db.session.query(Product.id).filter_by(sku=sku).first():
        raise ConflictError(f"SKU already exists: {sku}")

    product = Product(
        sku=sku,
        name=name,
        category=category,
        description=description,
        price=round2(price),
        stock=stock,
        min_stock=min_stock,
    )
    db.session.add(product)
    db.session.commit()
    return product
