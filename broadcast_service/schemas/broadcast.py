# broadcast_service/schemas/broadcast.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal, Union, Annotated
from datetime import datetime
from enum import Enum

from broadcast_service.constants import broadcast as const


# --- Enums ---

class InputKind(str, Enum):
    TEXT = "text"
    VOICE = "voice"
    IMAGE = "image"
    MIXED = "mixed"


# Values come from the persisted constants
class OrderKind(str, Enum):
    DELIVERY = const.OrderKind.DELIVERY
    PICKUP = const.OrderKind.PICKUP


class BroadcastStatus(str, Enum):
    ACTIVE = const.BroadcastStatus.ACTIVE
    COMPLETED = const.BroadcastStatus.COMPLETED
    CANCELLED = const.BroadcastStatus.CANCELLED
    EXPIRED = const.BroadcastStatus.EXPIRED


# --- Payload variants ---
# Exactly the fields relevant to the declared kind are accepted.

class _PayloadBase(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)

    model_config = {"extra": "forbid"}

    def snapshot_fields(self) -> dict:
        """The raw-input columns for this variant; absent fields are None."""
        return {
            "raw_text": getattr(self, "text", None),
            "voice_reference": getattr(self, "voice_reference", None),
            "image_references": list(getattr(self, "image_references", None) or []) or None,
            "customer_notes": self.notes,
        }

    def has_content(self) -> bool:
        fields = self.snapshot_fields()
        return bool(
            (fields["raw_text"] or "").strip()
            or (fields["voice_reference"] or "").strip()
            or any(ref.strip() for ref in fields["image_references"] or [])
        )


class TextPayload(_PayloadBase):
    input_kind: Literal["text"] = "text"
    text: str = Field(..., min_length=1, max_length=5000)


class VoicePayload(_PayloadBase):
    input_kind: Literal["voice"] = "voice"
    voice_reference: str = Field(..., min_length=1, max_length=1000)


class ImagePayload(_PayloadBase):
    input_kind: Literal["image"] = "image"
    image_references: List[str] = Field(..., min_length=1, max_length=5)


class MixedPayload(_PayloadBase):
    input_kind: Literal["mixed"] = "mixed"
    text: Optional[str] = Field(None, max_length=5000)
    voice_reference: Optional[str] = Field(None, max_length=1000)
    image_references: List[str] = Field(default_factory=list, max_length=5)


BroadcastPayload = Annotated[
    Union[TextPayload, VoicePayload, ImagePayload, MixedPayload],
    Field(discriminator="input_kind"),
]


# --- Create ---

class BroadcastCreate(BaseModel):
    payload: BroadcastPayload
    seller_ids: List[str]
    delivery_address_id: Optional[str] = None
    order_kind: OrderKind = OrderKind.DELIVERY

    @field_validator("seller_ids")
    @classmethod
    def strip_seller_ids(cls, value: List[str]) -> List[str]:
        return [v.strip() for v in value if v and v.strip()]


# --- Response shapes ---

class SellerSummary(BaseModel):
    id: str
    name: str
    logo_url: Optional[str] = None
    rating: Optional[float] = None
    delivery_fee: float = 0.0

    model_config = {"from_attributes": True}


class PricingRequestResponse(BaseModel):
    id: str
    broadcast_id: str
    seller_id: str
    status: str
    items_count: int = 0
    subtotal: float = 0.0
    delivery_fee: float = 0.0
    total: float = 0.0
    pricing_expires_at: datetime
    order_id: Optional[str] = None
    priced_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PricingRequestWithSeller(PricingRequestResponse):
    seller: Optional[SellerSummary] = None


class BroadcastResponse(BaseModel):
    id: str
    customer_id: str
    input_kind: InputKind
    raw_text: Optional[str] = None
    voice_reference: Optional[str] = None
    image_references: Optional[List[str]] = None
    customer_notes: Optional[str] = None
    seller_ids: List[str]
    delivery_address_snapshot: Optional[dict] = None
    order_kind: OrderKind
    status: BroadcastStatus
    pricing_deadline: datetime
    auto_cancel_deadline: datetime
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BroadcastCreateResult(BaseModel):
    broadcast: BroadcastResponse
    requests: List[PricingRequestResponse]


class BroadcastWithRequests(BroadcastResponse):
    requests: List[PricingRequestWithSeller] = []


class CancelBroadcastResult(BaseModel):
    success: bool


class CountResult(BaseModel):
    count: int
