# Overview: Service-layer operations for product stock; conditional decrements and restores.

from __future__ import annotations

from sqlalchemy import update

from ..errors import InsufficientStock, ProductNotFound
from ..extensions import db
from ..models import Product
from .concurrency import lock_for_update


def _load_locked(product_id: int) -> Product:
    product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
    if product is None:
        raise ProductNotFound(product_id)
    return product


def check_available(product_id: int, quantity: int) -> Product:
    """
    Load a product under lock and verify `quantity` units are on hand.

    Raises ProductNotFound / InsufficientStock. Does not mutate stock.
    """
    product = _load_locked(product_id)
    if product.stock < quantity:
        raise InsufficientStock(product.id, product.name, product.stock, quantity)
    return product


def reserve_and_decrement(product_id: int, quantity: int) -> Product:
    """
    Decrement stock inside the caller's transaction.

    The row is read under lock, then decremented with a conditional UPDATE
    (stock >= quantity), so stock can never go negative even where the
    database ignores FOR UPDATE. The caller rolls back on error.
    """
    product = check_available(product_id, quantity)

    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount != 1:
        db.session.refresh(product)
        raise InsufficientStock(product.id, product.name, product.stock, quantity)
    return product


def restore(product_id: int, quantity: int) -> bool:
    """
    Add `quantity` back to a product's stock (sale cancellation).

    Returns False when the product no longer exists; the cancellation
    still goes through for the remaining lines.
    """
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock=Product.stock + quantity)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount == 1
