# broadcast_service/models/order.py
import uuid
import hashlib
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from broadcast_service.db.base_class import Base


class Order(Base):
    __tablename__ = "orders"

    id = Column(
        String, primary_key=True, default=lambda: f"ord_{uuid.uuid4().hex[:12]}"
    )
    order_number = Column(String(50), unique=True, nullable=False)
    seller_id = Column(String, nullable=False, index=True)
    customer_id = Column(String, nullable=False, index=True)
    pricing_request_id = Column(String, nullable=True, index=True)

    order_flow = Column(String(20), nullable=False, server_default="custom")
    order_kind = Column(String(20), nullable=False, server_default="pickup")
    status = Column(String(50), nullable=False)
    payment_status = Column(String(50), nullable=False, server_default="pending")

    subtotal = Column(Numeric(12, 2), nullable=False)
    delivery_fee = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    items = relationship(
        "OrderLineItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLineItem.display_order",
    )

    @staticmethod
    def generate_order_number(order_id: str) -> str:
        """Generate a human-readable order number."""
        year = datetime.now().year
        hash_part = hashlib.sha256(order_id.encode()).hexdigest()[:6].upper()
        return f"ORD-{year}-{hash_part}"
