from .catalog import Product
from .inventory import InventoryRecord
from .customers import Customer
from .suppliers import Supplier
from .shipments import Shipment, CustomsClearance, CLEARANCE_STATUSES
from .sales import Sale, SaleItem, SALE_STATUSES, PAYMENT_STATUSES
from .auth import User, SessionToken

__all__ = [
    'Product', 'InventoryRecord', 'Customer', 'Supplier',
    'Shipment', 'CustomsClearance', 'CLEARANCE_STATUSES',
    'Sale', 'SaleItem', 'SALE_STATUSES', 'PAYMENT_STATUSES',
    'User', 'SessionToken',
]
