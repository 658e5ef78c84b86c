# broadcast_service/models/__init__.py
# Import all models so SQLAlchemy can resolve relationships by name.

from broadcast_service.db.base_class import Base
from broadcast_service.models.seller import Seller
from broadcast_service.models.customer_address import CustomerAddress
from broadcast_service.models.broadcast import Broadcast
from broadcast_service.models.pricing_request import PricingRequest
from broadcast_service.models.order import Order
from broadcast_service.models.order_line_item import OrderLineItem
from broadcast_service.models.price_history import PriceHistoryEntry

__all__ = [
    "Base",
    "Seller",
    "CustomerAddress",
    "Broadcast",
    "PricingRequest",
    "Order",
    "OrderLineItem",
    "PriceHistoryEntry",
]
