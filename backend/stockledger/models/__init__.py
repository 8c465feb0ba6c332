from .catalog import Category, Item
from .sales import SaleRecord
from .auth import AdminUser, SessionToken
from .settings import Setting

__all__ = [
    'Category', 'Item',
    'SaleRecord',
    'AdminUser', 'SessionToken',
    'Setting',
]
