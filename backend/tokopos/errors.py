"""
Business error taxonomy for the sale transaction engine.

Every error carries an HTTP status and a `details` dict with the figures the
terminal needs to explain the failure to the cashier (product id/name,
amounts). Messages never include stack traces.
"""
from __future__ import annotations


class SaleError(Exception):
    """Raised for sale operation errors."""
    status_code = 400
    code = "SALE_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class EmptyCart(SaleError):
    code = "EMPTY_CART"


class InvalidItemData(SaleError):
    code = "INVALID_ITEM_DATA"


class MissingPayment(SaleError):
    code = "MISSING_PAYMENT"


class InvalidSaleData(SaleError):
    code = "INVALID_SALE_DATA"


class ProductNotFound(SaleError):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id):
        super().__init__(
            f"Product with ID {product_id} not found",
            details={"product_id": product_id},
        )


class InsufficientStock(SaleError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int, product_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for product {product_name}. "
            f"Available: {available}, Requested: {requested}",
            details={
                "product_id": product_id,
                "product_name": product_name,
                "available": available,
                "requested": requested,
            },
        )


class InsufficientPayment(SaleError):
    code = "INSUFFICIENT_PAYMENT"

    def __init__(self, amount_paid: str, total: str):
        super().__init__(
            f"Amount paid ({amount_paid}) is insufficient. Total amount: {total}",
            details={"amount_paid": amount_paid, "total": total},
        )


class SaleNotFound(SaleError):
    status_code = 404
    code = "SALE_NOT_FOUND"

    def __init__(self, sale_id):
        super().__init__("Sale not found", details={"sale_id": sale_id})


class AlreadyCancelled(SaleError):
    code = "ALREADY_CANCELLED"

    def __init__(self, sale_number: str):
        super().__init__("Sale is already cancelled", details={"sale_number": sale_number})


class InvalidSaleState(SaleError):
    code = "INVALID_SALE_STATE"
