# broadcast_service/crud/crud_pricing_request.py
"""
Data access for per-seller pricing requests.

Every status change here is a conditional update ("... WHERE status = :expected")
and reports whether it matched, so concurrent writers cannot both win.
"""
from typing import Optional, List, Iterable
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func

from broadcast_service.constants.broadcast import PricingRequestStatus
from broadcast_service.models.broadcast import Broadcast
from broadcast_service.models.pricing_request import PricingRequest


def create_many(
    db: Session,
    *,
    broadcast_id: str,
    pricing_expires_at: datetime,
    sellers: Iterable,
) -> List[PricingRequest]:
    """One pending request per validated seller config, in seller order."""
    requests = []
    for seller in sellers:
        rq = PricingRequest(
            broadcast_id=broadcast_id,
            seller_id=seller.seller_id,
            status=PricingRequestStatus.PENDING,
            items_count=0,
            subtotal=Decimal("0"),
            delivery_fee=seller.delivery_fee,
            total=Decimal("0"),
            pricing_expires_at=pricing_expires_at,
        )
        db.add(rq)
        requests.append(rq)
    db.commit()
    for rq in requests:
        db.refresh(rq)
    return requests


def get(db: Session, request_id: str) -> Optional[PricingRequest]:
    return (
        db.query(PricingRequest)
        .options(joinedload(PricingRequest.broadcast))
        .filter(PricingRequest.id == request_id)
        .first()
    )


def get_state(db: Session, request_id: str):
    """
    Read the request's current status and deadline straight from the
    database, bypassing any ORM instance already held by this session.
    """
    return (
        db.query(
            PricingRequest.id,
            PricingRequest.seller_id,
            PricingRequest.broadcast_id,
            PricingRequest.status,
            PricingRequest.pricing_expires_at,
            PricingRequest.delivery_fee,
            PricingRequest.order_id,
            Broadcast.customer_id,
        )
        .join(Broadcast, Broadcast.id == PricingRequest.broadcast_id)
        .filter(PricingRequest.id == request_id)
        .first()
    )


def get_for_seller(
    db: Session, *, request_id: str, seller_id: str
) -> Optional[PricingRequest]:
    return (
        db.query(PricingRequest)
        .options(joinedload(PricingRequest.broadcast))
        .filter(
            PricingRequest.id == request_id,
            PricingRequest.seller_id == seller_id,
        )
        .first()
    )


def list_for_seller(
    db: Session,
    seller_id: str,
    statuses: Optional[List[str]] = None,
) -> List[PricingRequest]:
    """Seller inbox, most urgent deadline first."""
    query = (
        db.query(PricingRequest)
        .options(joinedload(PricingRequest.broadcast))
        .filter(PricingRequest.seller_id == seller_id)
    )
    if statuses:
        query = query.filter(PricingRequest.status.in_(statuses))
    return query.order_by(
        PricingRequest.pricing_expires_at.asc(), PricingRequest.created_at.asc()
    ).all()


def count_pending_for_seller(db: Session, seller_id: str) -> int:
    return (
        db.query(func.count(PricingRequest.id))
        .filter(
            PricingRequest.seller_id == seller_id,
            PricingRequest.status == PricingRequestStatus.PENDING,
        )
        .scalar()
    )


# ── Conditional transitions ───────────────────────────────────────────

def claim(db: Session, *, request_id: str, claimed_at: datetime) -> bool:
    """pending -> claimed. True only for the single writer whose update matched."""
    updated = (
        db.query(PricingRequest)
        .filter(
            PricingRequest.id == request_id,
            PricingRequest.status == PricingRequestStatus.PENDING,
        )
        .update(
            {"status": PricingRequestStatus.CLAIMED, "claimed_at": claimed_at},
            synchronize_session=False,
        )
    )
    db.commit()
    return updated == 1


def release_claim(db: Session, *, request_id: str) -> bool:
    """claimed -> pending, undoing a claim whose submission failed."""
    updated = (
        db.query(PricingRequest)
        .filter(
            PricingRequest.id == request_id,
            PricingRequest.status == PricingRequestStatus.CLAIMED,
        )
        .update(
            {"status": PricingRequestStatus.PENDING, "claimed_at": None},
            synchronize_session=False,
        )
    )
    db.commit()
    return updated == 1


def mark_priced(
    db: Session,
    *,
    request_id: str,
    order_id: str,
    items_count: int,
    subtotal: Decimal,
    delivery_fee: Decimal,
    total: Decimal,
    priced_at: datetime,
) -> bool:
    """claimed -> priced with final totals. order_id is only ever set here, once."""
    updated = (
        db.query(PricingRequest)
        .filter(
            PricingRequest.id == request_id,
            PricingRequest.status == PricingRequestStatus.CLAIMED,
            PricingRequest.order_id.is_(None),
        )
        .update(
            {
                "status": PricingRequestStatus.PRICED,
                "order_id": order_id,
                "items_count": items_count,
                "subtotal": subtotal,
                "delivery_fee": delivery_fee,
                "total": total,
                "priced_at": priced_at,
            },
            synchronize_session=False,
        )
    )
    db.commit()
    return updated == 1


def expire_overdue_pending(db: Session, *, now: datetime) -> int:
    count = (
        db.query(PricingRequest)
        .filter(
            PricingRequest.status == PricingRequestStatus.PENDING,
            PricingRequest.pricing_expires_at <= now,
        )
        .update({"status": PricingRequestStatus.EXPIRED}, synchronize_session=False)
    )
    db.commit()
    return count


def expire_stale_claims(db: Session, *, deadline_before: datetime) -> int:
    """Expire claims whose deadline passed before the given cutoff."""
    count = (
        db.query(PricingRequest)
        .filter(
            PricingRequest.status == PricingRequestStatus.CLAIMED,
            PricingRequest.pricing_expires_at <= deadline_before,
        )
        .update({"status": PricingRequestStatus.EXPIRED}, synchronize_session=False)
    )
    db.commit()
    return count
