# broadcast_service/services/seller_eligibility.py
"""
Seller eligibility checks for broadcast orders.

Read-only: looks sellers up, checks they can take a custom order, and
resolves the per-seller settings the orchestrator needs.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from broadcast_service.constants.broadcast import SellerOperationMode
from broadcast_service.core.config import settings
from broadcast_service.core.exceptions import (
    NoSellersProvided,
    TooManySellers,
    SellerNotFound,
    SellerInactive,
    SellerNotCapable,
)
from broadcast_service.crud import crud_seller
from broadcast_service.models.seller import Seller

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SellerConfig:
    seller_id: str
    name: str
    pricing_timeout_hours: int
    auto_cancel_after_hours: int
    delivery_fee: Decimal
    max_items_per_order: int
    show_price_history: bool
    accepted_inputs: Tuple[str, ...] = ("text", "voice", "image")


def _positive_int(value, default: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def resolve_settings(seller: Seller) -> SellerConfig:
    """Merge the seller's custom order settings over the service defaults."""
    custom = seller.custom_order_settings or {}
    return SellerConfig(
        seller_id=seller.id,
        name=seller.name,
        pricing_timeout_hours=_positive_int(
            custom.get("pricing_timeout_hours"), settings.DEFAULT_PRICING_TIMEOUT_HOURS
        ),
        auto_cancel_after_hours=_positive_int(
            custom.get("auto_cancel_after_hours"), settings.DEFAULT_AUTO_CANCEL_AFTER_HOURS
        ),
        delivery_fee=Decimal(seller.delivery_fee if seller.delivery_fee is not None else 0),
        max_items_per_order=_positive_int(
            custom.get("max_items_per_order"), settings.DEFAULT_MAX_ITEMS_PER_ORDER
        ),
        show_price_history=custom.get("show_price_history", True) is not False,
        accepted_inputs=tuple(
            kind for kind in ("text", "voice", "image")
            if custom.get(f"accepts_{kind}", True) is not False
        ),
    )


def normalize_seller_ids(seller_ids: List[str]) -> List[str]:
    """Drop blanks and repeats, keeping the customer's order."""
    seen = set()
    result = []
    for seller_id in seller_ids or []:
        seller_id = (seller_id or "").strip()
        if seller_id and seller_id not in seen:
            seen.add(seller_id)
            result.append(seller_id)
    return result


def validate_sellers(db: Session, seller_ids: List[str]) -> List[SellerConfig]:
    """
    Validate a broadcast's sellers as one batch.

    Any unknown, inactive or catalog-only seller rejects the whole batch.
    Returns one config per seller in the order given.
    """
    ids = normalize_seller_ids(seller_ids)
    if not ids:
        raise NoSellersProvided()
    if len(ids) > settings.MAX_BROADCAST_SELLERS:
        raise TooManySellers(
            f"A broadcast can go to at most {settings.MAX_BROADCAST_SELLERS} sellers."
        )

    found = {seller.id: seller for seller in crud_seller.get_many(db, ids)}

    missing = [seller_id for seller_id in ids if seller_id not in found]
    if missing:
        logger.info(f"Broadcast rejected, unknown sellers: {missing}")
        raise SellerNotFound(f"Seller(s) not found: {', '.join(missing)}")

    inactive = [s for s in ids if not (found[s].is_active and found[s].is_approved)]
    if inactive:
        raise SellerInactive(f"Seller(s) not available: {', '.join(inactive)}")

    incapable = [
        s for s in ids
        if not SellerOperationMode.accepts_custom_orders(found[s].operation_mode)
    ]
    if incapable:
        raise SellerNotCapable(
            f"Seller(s) do not accept custom orders: {', '.join(incapable)}"
        )

    return [resolve_settings(found[seller_id]) for seller_id in ids]


def load_seller_config(db: Session, seller_id: str) -> Optional[SellerConfig]:
    seller = crud_seller.get(db, seller_id)
    if seller is None:
        return None
    return resolve_settings(seller)
