from .auth_client import AuthClient
from .base import BaseClient
from .inventory_client import InventoryClient
from .locations_client import LocationsClient
from .orders_client import OrdersClient
from .transfers_client import TransfersClient

__all__ = [
    "AuthClient",
    "BaseClient",
    "InventoryClient",
    "LocationsClient",
    "OrdersClient",
    "TransfersClient",
]
