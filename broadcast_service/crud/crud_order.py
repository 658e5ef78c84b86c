# broadcast_service/crud/crud_order.py
import uuid
from typing import Optional, List, Iterable
from decimal import Decimal
from sqlalchemy.orm import Session, joinedload

from broadcast_service.constants.broadcast import (
    CustomOrderStatus,
    OrderKind,
    ORDER_FLOW_CUSTOM,
)
from broadcast_service.models.order import Order
from broadcast_service.models.order_line_item import OrderLineItem


def create_custom_order(
    db: Session,
    *,
    seller_id: str,
    customer_id: str,
    pricing_request_id: str,
    subtotal: Decimal,
    delivery_fee: Decimal,
    total: Decimal,
    order_kind: str = OrderKind.PICKUP,
) -> Order:
    order_id = f"ord_{uuid.uuid4().hex[:12]}"
    db_obj = Order(
        id=order_id,
        order_number=Order.generate_order_number(order_id),
        seller_id=seller_id,
        customer_id=customer_id,
        pricing_request_id=pricing_request_id,
        order_flow=ORDER_FLOW_CUSTOM,
        order_kind=order_kind,
        status=CustomOrderStatus.AWAITING_PRICING_APPROVAL,
        payment_status="pending",
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        total=total,
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def add_line_items(
    db: Session,
    *,
    order_id: str,
    pricing_request_id: str,
    items: Iterable,
) -> List[OrderLineItem]:
    """Insert quoted items tagged with their order, keeping submission order."""
    rows = []
    for index, item in enumerate(items):
        row = OrderLineItem(
            order_id=order_id,
            pricing_request_id=pricing_request_id,
            name=item.name,
            description=item.description,
            unit_kind=item.unit_kind.value,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total_price=item.line_total,
            availability=item.availability.value,
            substitute_name=item.substitute_name,
            substitute_quantity=item.substitute_quantity,
            substitute_unit_price=item.substitute_unit_price,
            substitute_total=item.effective_substitute_total,
            seller_notes=item.seller_notes,
            display_order=index,
        )
        db.add(row)
        rows.append(row)
    db.commit()
    return rows


def get(db: Session, order_id: str) -> Optional[Order]:
    return (
        db.query(Order)
        .options(joinedload(Order.items))
        .filter(Order.id == order_id)
        .first()
    )


def delete(db: Session, *, order_id: str) -> int:
    """Remove an order and its line items."""
    db.query(OrderLineItem).filter(OrderLineItem.order_id == order_id).delete(
        synchronize_session=False
    )
    count = db.query(Order).filter(Order.id == order_id).delete(synchronize_session=False)
    db.commit()
    return count
