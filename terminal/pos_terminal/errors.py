from __future__ import annotations


class TerminalError(Exception):
    """Soft failure: shown to the cashier, the cart is left as it was."""
    pass


class ApiError(TerminalError):
    """The backend answered with a non-success response."""

    def __init__(self, message: str, status_code: int | None = None, error: str | None = None, details: dict | None = None):
        super().__init__(error or message)
        self.message = message
        self.status_code = status_code
        self.error = error
        self.details = details or {}


class RequestTimeout(TerminalError):
    def __init__(self, message: str = "Request timeout"):
        super().__init__(message)


class CheckoutError(TerminalError):
    """Local pre-check failed (empty cart, not enough cash)."""
    pass
