"""
Cashier terminal logic for TokoPOS: cart, checkout and the API client.

No UI code lives here; a front end drives a TerminalSession and a Checkout.
"""
from .cart import Cart, CartLine
from .checkout import Checkout, DisplayTotals, PosSettings
from .client import PosApiClient
from .config import TerminalConfig
from .errors import ApiError, CheckoutError, RequestTimeout, TerminalError
from .session import TerminalSession
from .storage import LocalStore

__all__ = [
    'Cart', 'CartLine',
    'Checkout', 'DisplayTotals', 'PosSettings',
    'PosApiClient',
    'TerminalConfig',
    'ApiError', 'CheckoutError', 'RequestTimeout', 'TerminalError',
    'TerminalSession',
    'LocalStore',
]
