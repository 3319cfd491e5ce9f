from .tenancy import Tenant, TenantOwnedMixin, User
from .inventory import Product
from .sales import Transaction, TransactionItem

__all__ = [
    'Tenant', 'TenantOwnedMixin', 'User',
    'Product',
    'Transaction', 'TransactionItem',
]
