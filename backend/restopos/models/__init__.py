from .tenancy import Restaurant
from .auth import User, SessionToken
from .catalog import Category, Product
from .customers import Customer
from .inventory import Purchase
from .sales import Sale, SaleItem, SALE_STATUSES
from .security import SecurityEvent

__all__ = [
    'Restaurant',
    'User', 'SessionToken',
    'Category', 'Product',
    'Customer',
    'Purchase',
    'Sale', 'SaleItem', 'SALE_STATUSES',
    'SecurityEvent',
]
