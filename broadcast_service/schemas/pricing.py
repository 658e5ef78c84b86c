# broadcast_service/schemas/pricing.py
from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum

from broadcast_service.constants import broadcast as const
from broadcast_service.schemas.broadcast import OrderKind

CENTS = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


# --- Enums ---

class Availability(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    SUBSTITUTED = "substituted"


class UnitKind(str, Enum):
    KG = "kg"
    GRAM = "gram"
    PIECE = "piece"
    BOX = "box"
    CARTON = "carton"
    PACK = "pack"
    BOTTLE = "bottle"
    LITER = "liter"
    BAG = "bag"
    DOZEN = "dozen"
    BUNDLE = "bundle"


class PricingRequestStatus(str, Enum):
    PENDING = const.PricingRequestStatus.PENDING
    CLAIMED = const.PricingRequestStatus.CLAIMED
    PRICED = const.PricingRequestStatus.PRICED
    CANCELLED = const.PricingRequestStatus.CANCELLED
    EXPIRED = const.PricingRequestStatus.EXPIRED


# --- Submit ---

class PricingLineItemIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    unit_kind: UnitKind
    unit_price: Decimal = Field(..., ge=0)
    quantity: Decimal = Field(..., gt=0)
    availability: Availability = Availability.AVAILABLE

    substitute_name: Optional[str] = Field(None, max_length=200)
    substitute_quantity: Optional[Decimal] = Field(None, gt=0)
    substitute_unit_price: Optional[Decimal] = Field(None, ge=0)
    substitute_total: Optional[Decimal] = Field(None, ge=0)

    seller_notes: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def validate_substitute(self):
        if self.availability == Availability.SUBSTITUTED and self.substitute_total is None:
            if self.substitute_unit_price is None or self.substitute_quantity is None:
                raise ValueError(
                    "substituted items need substitute_total or "
                    "substitute_unit_price and substitute_quantity"
                )
        return self

    @property
    def line_total(self) -> Decimal:
        return quantize_money(self.unit_price * self.quantity)

    @property
    def effective_substitute_total(self) -> Optional[Decimal]:
        if self.substitute_total is not None:
            return quantize_money(self.substitute_total)
        if self.substitute_unit_price is not None and self.substitute_quantity is not None:
            return quantize_money(self.substitute_unit_price * self.substitute_quantity)
        return None

    @property
    def contributed_total(self) -> Decimal:
        """What this line adds to the quote subtotal."""
        if self.availability == Availability.UNAVAILABLE:
            return Decimal("0.00")
        if self.availability == Availability.SUBSTITUTED:
            return self.effective_substitute_total
        return self.line_total


class PricingSubmit(BaseModel):
    items: List[PricingLineItemIn] = Field(..., min_length=1)
    # Falls back to the seller's configured fee when omitted
    delivery_fee: Optional[Decimal] = Field(None, ge=0)


class PricingResult(BaseModel):
    request_id: str
    order_id: str
    order_number: str
    subtotal: float
    delivery_fee: float
    total: float
    items_count: int


# --- Seller views ---

class BroadcastSnapshot(BaseModel):
    """The immutable copy of the customer's request a seller prices from."""
    broadcast_id: str
    customer_id: str
    input_kind: str
    raw_text: Optional[str] = None
    voice_reference: Optional[str] = None
    image_references: Optional[List[str]] = None
    customer_notes: Optional[str] = None
    delivery_address_snapshot: Optional[dict] = None
    order_kind: OrderKind
    pricing_deadline: datetime
    broadcast_status: str


class SellerPricingRequestItem(BaseModel):
    id: str
    status: PricingRequestStatus
    items_count: int
    subtotal: float
    delivery_fee: float
    total: float
    pricing_expires_at: datetime
    order_id: Optional[str] = None
    priced_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    broadcast: BroadcastSnapshot

    @classmethod
    def from_request(cls, rq, **extra):
        bc = rq.broadcast
        return cls(
            id=rq.id,
            status=rq.status,
            items_count=rq.items_count or 0,
            subtotal=rq.subtotal or 0,
            delivery_fee=rq.delivery_fee or 0,
            total=rq.total or 0,
            pricing_expires_at=rq.pricing_expires_at,
            order_id=rq.order_id,
            priced_at=rq.priced_at,
            created_at=rq.created_at,
            broadcast=BroadcastSnapshot(
                broadcast_id=bc.id,
                customer_id=bc.customer_id,
                input_kind=bc.input_kind,
                raw_text=bc.raw_text,
                voice_reference=bc.voice_reference,
                image_references=bc.image_references,
                customer_notes=bc.customer_notes,
                delivery_address_snapshot=bc.delivery_address_snapshot,
                order_kind=bc.order_kind,
                pricing_deadline=bc.pricing_deadline,
                broadcast_status=bc.status,
            ),
            **extra,
        )


class PriceHistoryItem(BaseModel):
    id: str
    item_name: str
    unit_kind: Optional[str] = None
    unit_price: float
    last_ordered_at: datetime

    @classmethod
    def from_entry(cls, entry):
        return cls(
            id=entry.id,
            item_name=entry.item_name,
            unit_kind=entry.unit_kind,
            unit_price=entry.unit_price,
            last_ordered_at=entry.updated_at or entry.created_at,
        )


class SellerPricingRequestDetail(SellerPricingRequestItem):
    price_history: List[PriceHistoryItem] = []
