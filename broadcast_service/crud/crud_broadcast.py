# broadcast_service/crud/crud_broadcast.py
from typing import Optional, List
from datetime import datetime
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func, exists, and_

from broadcast_service.constants.broadcast import BroadcastStatus, PricingRequestStatus
from broadcast_service.models.broadcast import Broadcast
from broadcast_service.models.pricing_request import PricingRequest


def create(
    db: Session,
    *,
    customer_id: str,
    input_kind: str,
    payload_fields: dict,
    seller_ids: List[str],
    delivery_address_snapshot: Optional[dict],
    order_kind: str,
    pricing_deadline: datetime,
    auto_cancel_deadline: datetime,
) -> Broadcast:
    db_obj = Broadcast(
        customer_id=customer_id,
        input_kind=input_kind,
        raw_text=payload_fields.get("raw_text"),
        voice_reference=payload_fields.get("voice_reference"),
        image_references=payload_fields.get("image_references"),
        customer_notes=payload_fields.get("customer_notes"),
        seller_ids=list(seller_ids),
        delivery_address_snapshot=delivery_address_snapshot,
        order_kind=order_kind,
        status=BroadcastStatus.ACTIVE,
        pricing_deadline=pricing_deadline,
        auto_cancel_deadline=auto_cancel_deadline,
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def delete(db: Session, *, broadcast_id: str) -> int:
    """Hard delete, used only to undo a failed fan-out."""
    db.query(PricingRequest).filter(
        PricingRequest.broadcast_id == broadcast_id
    ).delete(synchronize_session=False)
    count = (
        db.query(Broadcast)
        .filter(Broadcast.id == broadcast_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return count


def get(db: Session, broadcast_id: str) -> Optional[Broadcast]:
    return (
        db.query(Broadcast)
        .options(joinedload(Broadcast.requests).joinedload(PricingRequest.seller))
        .filter(Broadcast.id == broadcast_id)
        .first()
    )


def get_simple(db: Session, broadcast_id: str) -> Optional[Broadcast]:
    """Get broadcast without eager loading relationships."""
    return db.query(Broadcast).filter(Broadcast.id == broadcast_id).first()


def list_active_by_customer(db: Session, customer_id: str) -> List[Broadcast]:
    return (
        db.query(Broadcast)
        .filter(
            Broadcast.customer_id == customer_id,
            Broadcast.status == BroadcastStatus.ACTIVE,
        )
        .order_by(Broadcast.created_at.desc())
        .all()
    )


def list_history_by_customer(
    db: Session, customer_id: str, limit: int = 20
) -> List[Broadcast]:
    return (
        db.query(Broadcast)
        .filter(Broadcast.customer_id == customer_id)
        .order_by(Broadcast.created_at.desc())
        .limit(limit)
        .all()
    )


def count_active_by_customer(db: Session, customer_id: str) -> int:
    return (
        db.query(func.count(Broadcast.id))
        .filter(
            Broadcast.customer_id == customer_id,
            Broadcast.status == BroadcastStatus.ACTIVE,
        )
        .scalar()
    )


def cancel(db: Session, *, broadcast_id: str, cancelled_at: datetime) -> Optional[int]:
    """
    Flip an active broadcast to cancelled and cancel its pending requests.

    Both writes commit together. Returns the number of requests cancelled,
    or None if the broadcast was no longer active when the update ran.
    Claimed and priced requests are left as they are.
    """
    updated = (
        db.query(Broadcast)
        .filter(
            Broadcast.id == broadcast_id,
            Broadcast.status == BroadcastStatus.ACTIVE,
        )
        .update(
            {"status": BroadcastStatus.CANCELLED, "cancelled_at": cancelled_at},
            synchronize_session=False,
        )
    )
    if updated != 1:
        db.rollback()
        return None

    cancelled_requests = (
        db.query(PricingRequest)
        .filter(
            PricingRequest.broadcast_id == broadcast_id,
            PricingRequest.status == PricingRequestStatus.PENDING,
        )
        .update(
            {"status": PricingRequestStatus.CANCELLED},
            synchronize_session=False,
        )
    )
    db.commit()
    return cancelled_requests


def expire_overdue(db: Session, *, now: datetime) -> List[str]:
    """
    Expire active broadcasts past their auto-cancel deadline that never
    received a priced quote. Their pending requests expire with them.
    Returns the expired broadcast ids.

    The priced check is repeated in the UPDATE itself, so a quote that
    lands after the candidates are selected keeps its broadcast active.
    """
    has_priced = (
        exists()
        .where(
            and_(
                PricingRequest.broadcast_id == Broadcast.id,
                PricingRequest.status == PricingRequestStatus.PRICED,
            )
        )
        .correlate(Broadcast)
    )
    overdue_ids = [
        row[0]
        for row in db.query(Broadcast.id)
        .filter(
            Broadcast.status == BroadcastStatus.ACTIVE,
            Broadcast.auto_cancel_deadline <= now,
            ~has_priced,
        )
        .all()
    ]
    if not overdue_ids:
        return []

    updated = (
        db.query(Broadcast)
        .filter(
            Broadcast.id.in_(overdue_ids),
            Broadcast.status == BroadcastStatus.ACTIVE,
            ~has_priced,
        )
        .update(
            {"status": BroadcastStatus.EXPIRED, "expired_at": now},
            synchronize_session=False,
        )
    )
    if not updated:
        db.rollback()
        return []

    expired_ids = [
        row[0]
        for row in db.query(Broadcast.id)
        .filter(
            Broadcast.id.in_(overdue_ids),
            Broadcast.status == BroadcastStatus.EXPIRED,
            Broadcast.expired_at == now,
        )
        .all()
    ]
    db.query(PricingRequest).filter(
        PricingRequest.broadcast_id.in_(expired_ids),
        PricingRequest.status == PricingRequestStatus.PENDING,
    ).update(
        {"status": PricingRequestStatus.EXPIRED},
        synchronize_session=False,
    )
    db.commit()
    return expired_ids
