# broadcast_service/models/pricing_request.py
import uuid
from sqlalchemy import (
    Column, String, Integer, DateTime, Numeric, ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from broadcast_service.db.base_class import Base


class PricingRequest(Base):
    __tablename__ = "pricing_requests"

    id = Column(
        String, primary_key=True, default=lambda: f"prq_{uuid.uuid4().hex[:12]}"
    )
    broadcast_id = Column(
        String, ForeignKey("broadcasts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    seller_id = Column(
        String, ForeignKey("sellers.id"), nullable=False, index=True
    )

    # pending -> claimed -> priced; pending -> cancelled; pending/claimed -> expired
    status = Column(String, nullable=False, server_default="pending")

    # Quote summary, zero until priced
    items_count = Column(Integer, nullable=False, server_default="0")
    subtotal = Column(Numeric(12, 2), nullable=False, server_default="0")
    delivery_fee = Column(Numeric(12, 2), nullable=False, server_default="0")
    total = Column(Numeric(12, 2), nullable=False, server_default="0")

    # Copied from the broadcast at creation; never follows later changes
    pricing_expires_at = Column(DateTime(timezone=True), nullable=False)

    # Weak reference: set exactly once when priced
    order_id = Column(String, nullable=True, index=True)

    claimed_at = Column(DateTime(timezone=True), nullable=True)
    priced_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    broadcast = relationship("Broadcast", back_populates="requests")
    seller = relationship("Seller")

    __table_args__ = (
        UniqueConstraint("broadcast_id", "seller_id", name="uq_pricing_request_broadcast_seller"),
        Index("ix_pricing_requests_seller_status", "seller_id", "status"),
    )
