# broadcast_service/services/order_materializer.py
"""
Turns a priced quote into a firm order.

The pricing engine only talks to the ``OrderMaterializer`` interface so the
order store can be swapped out (or made to fail in tests).
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from sqlalchemy.orm import Session

from broadcast_service.constants.broadcast import OrderKind
from broadcast_service.crud import crud_order
from broadcast_service.schemas.pricing import PricingLineItemIn
from broadcast_service.services.quote_totals import QuoteTotals


@dataclass(frozen=True)
class MaterializedOrder:
    order_id: str
    order_number: str


class OrderMaterializer(ABC):
    @abstractmethod
    def create_order(
        self,
        *,
        seller_id: str,
        customer_id: str,
        pricing_request_id: str,
        totals: QuoteTotals,
        order_kind: str = OrderKind.PICKUP,
    ) -> MaterializedOrder:
        ...

    @abstractmethod
    def add_line_items(
        self,
        *,
        order_id: str,
        pricing_request_id: str,
        items: List[PricingLineItemIn],
    ) -> int:
        ...

    @abstractmethod
    def delete_order(self, order_id: str) -> None:
        ...


class SqlOrderMaterializer(OrderMaterializer):
    """Writes orders to the service's own ``orders`` tables."""

    def __init__(self, db: Session):
        self.db = db

    def create_order(
        self,
        *,
        seller_id: str,
        customer_id: str,
        pricing_request_id: str,
        totals: QuoteTotals,
        order_kind: str = OrderKind.PICKUP,
    ) -> MaterializedOrder:
        order = crud_order.create_custom_order(
            self.db,
            seller_id=seller_id,
            customer_id=customer_id,
            pricing_request_id=pricing_request_id,
            subtotal=totals.subtotal,
            delivery_fee=totals.delivery_fee,
            total=totals.total,
            order_kind=order_kind,
        )
        return MaterializedOrder(order_id=order.id, order_number=order.order_number)

    def add_line_items(
        self,
        *,
        order_id: str,
        pricing_request_id: str,
        items: List[PricingLineItemIn],
    ) -> int:
        rows = crud_order.add_line_items(
            self.db,
            order_id=order_id,
            pricing_request_id=pricing_request_id,
            items=items,
        )
        return len(rows)

    def delete_order(self, order_id: str) -> None:
        crud_order.delete(self.db, order_id=order_id)
