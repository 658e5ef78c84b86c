# broadcast_service/graphql/types.py
"""Strawberry GraphQL types for broadcasts and pricing requests."""
import strawberry
from typing import Optional, List
from datetime import datetime
from strawberry.scalars import JSON


@strawberry.type
class SellerSummaryType:
    id: str
    name: str
    logoUrl: Optional[str]
    rating: Optional[float]
    deliveryFee: float


@strawberry.type
class PricingRequestType:
    id: str
    broadcastId: str
    sellerId: str
    status: str
    itemsCount: int
    subtotal: float
    deliveryFee: float
    total: float
    pricingExpiresAt: datetime
    orderId: Optional[str]
    pricedAt: Optional[datetime]
    seller: Optional[SellerSummaryType] = None


@strawberry.type
class BroadcastType:
    id: str
    customerId: str
    inputKind: str
    rawText: Optional[str]
    voiceReference: Optional[str]
    imageReferences: Optional[List[str]]
    customerNotes: Optional[str]
    sellerIds: List[str]
    deliveryAddressSnapshot: Optional[JSON]
    orderKind: str
    status: str
    pricingDeadline: datetime
    autoCancelDeadline: datetime
    createdAt: Optional[datetime]
    requests: List[PricingRequestType] = strawberry.field(default_factory=list)


@strawberry.type
class SellerPricingRequestType:
    """A seller's request together with the customer's original input."""
    request: PricingRequestType
    broadcast: BroadcastType
