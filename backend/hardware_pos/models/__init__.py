from .inventory import Category, Supplier, Product, Delivery, DeliveryItem
from .sales import Sale, SaleItem, PAYMENT_METHODS
from .expenses import Expense
from .auth import User, SessionToken, ROLES
from .settings import StoreSetting

__all__ = [
    'Category', 'Supplier', 'Product', 'Delivery', 'DeliveryItem',
    'Sale', 'SaleItem', 'PAYMENT_METHODS',
    'Expense',
    'User', 'SessionToken', 'ROLES',
    'StoreSetting',
]
