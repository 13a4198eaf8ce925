# API v1 Package
from woodflow.api.v1 import (
    auth, companies, staff, quotations, boms, orders, invoices, receipts,
    products, overhead_costs, materials, sales, notifications, settings,
)

__all__ = [
    'auth',
    'companies',
    'staff',
    'quotations',
    'boms',
    'orders',
    'invoices',
    'receipts',
    'products',
    'overhead_costs',
    'materials',
    'sales',
    'notifications',
    'settings',
]
