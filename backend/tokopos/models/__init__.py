from .auth import User, SessionToken
from .inventory import Product
from .sales import Sale, SaleItem, SaleNumberSequence
from .settings import Setting

__all__ = [
    'User', 'SessionToken',
    'Product',
    'Sale', 'SaleItem', 'SaleNumberSequence',
    'Setting',
]
