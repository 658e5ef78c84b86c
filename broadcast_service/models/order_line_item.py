# broadcast_service/models/order_line_item.py
import uuid
from sqlalchemy import (
    Column, String, Text, Integer, DateTime, Numeric, ForeignKey, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from broadcast_service.db.base_class import Base


class OrderLineItem(Base):
    __tablename__ = "order_line_items"

    id = Column(
        String, primary_key=True, default=lambda: f"oli_{uuid.uuid4().hex[:12]}"
    )
    order_id = Column(
        String, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    pricing_request_id = Column(String, nullable=False, index=True)

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    unit_kind = Column(String(20), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)  # quantity * unit_price

    availability = Column(String(20), nullable=False)  # available, unavailable, substituted

    substitute_name = Column(String(200), nullable=True)
    substitute_quantity = Column(Numeric(12, 3), nullable=True)
    substitute_unit_price = Column(Numeric(12, 2), nullable=True)
    substitute_total = Column(Numeric(12, 2), nullable=True)

    seller_notes = Column(Text, nullable=True)
    display_order = Column(Integer, nullable=False, server_default="0")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_order_line_items_quantity_positive"),
    )

    # Relationships
    order = relationship("Order", back_populates="items")
