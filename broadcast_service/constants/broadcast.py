# broadcast_service/constants/broadcast.py
"""
Status and enum values for broadcasts, pricing requests and orders.

Stored as plain strings in the database; these classes keep the literals
in one place.
"""


class BroadcastStatus:
    """Broadcast lifecycle values."""
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class PricingRequestStatus:
    """Per-seller pricing request values."""
    PENDING = "pending"
    CLAIMED = "claimed"
    PRICED = "priced"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @classmethod
    def all_values(cls) -> list[str]:
        return [cls.PENDING, cls.CLAIMED, cls.PRICED, cls.CANCELLED, cls.EXPIRED]

    @classmethod
    def is_valid(cls, status: str) -> bool:
        return status in cls.all_values()


class SellerOperationMode:
    """Catalog-only sellers are 'standard'; the others accept custom orders."""
    STANDARD = "standard"
    CUSTOM = "custom"
    HYBRID = "hybrid"

    @classmethod
    def accepts_custom_orders(cls, mode: str) -> bool:
        return mode in (cls.CUSTOM, cls.HYBRID)


class OrderKind:
    DELIVERY = "delivery"
    PICKUP = "pickup"


class CustomOrderStatus:
    """Status of an order materialized from a priced request."""
    AWAITING_PRICING_APPROVAL = "awaiting_pricing_approval"


ORDER_FLOW_CUSTOM = "custom"
