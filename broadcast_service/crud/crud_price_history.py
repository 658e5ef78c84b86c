# broadcast_service/crud/crud_price_history.py
import re
from typing import List
from sqlalchemy.orm import Session

from broadcast_service.models.price_history import PriceHistoryEntry

_WHITESPACE = re.compile(r"\s+")


def normalize_item_name(name: str) -> str:
    return _WHITESPACE.sub(" ", name).strip().lower()


def upsert_many(
    db: Session,
    *,
    seller_id: str,
    customer_id: str,
    entries: List[dict],
) -> int:
    """
    Merge quoted items into the (seller, customer) price history.

    Each entry needs ``item_name`` and ``unit_price``; ``unit_kind``,
    ``quantity``, ``order_id`` and ``pricing_request_id`` are optional.
    Later entries for the same normalized name win.
    """
    by_key = {}
    for entry in entries:
        key = normalize_item_name(entry["item_name"])
        if key:
            by_key[key] = entry
    if not by_key:
        return 0

    existing = {
        row.item_name_normalized: row
        for row in db.query(PriceHistoryEntry)
        .filter(
            PriceHistoryEntry.seller_id == seller_id,
            PriceHistoryEntry.customer_id == customer_id,
            PriceHistoryEntry.item_name_normalized.in_(list(by_key)),
        )
        .all()
    }

    for key, entry in by_key.items():
        row = existing.get(key)
        if row is None:
            row = PriceHistoryEntry(
                seller_id=seller_id,
                customer_id=customer_id,
                item_name_normalized=key,
            )
            db.add(row)
        row.item_name = entry["item_name"].strip()
        row.unit_kind = entry.get("unit_kind")
        row.unit_price = entry["unit_price"]
        row.quantity = entry.get("quantity")
        row.order_id = entry.get("order_id")
        row.pricing_request_id = entry.get("pricing_request_id")

    db.commit()
    return len(by_key)


def list_for_customer(
    db: Session, *, seller_id: str, customer_id: str, limit: int = 50
) -> List[PriceHistoryEntry]:
    return (
        db.query(PriceHistoryEntry)
        .filter(
            PriceHistoryEntry.seller_id == seller_id,
            PriceHistoryEntry.customer_id == customer_id,
        )
        .order_by(PriceHistoryEntry.updated_at.desc())
        .limit(limit)
        .all()
    )
