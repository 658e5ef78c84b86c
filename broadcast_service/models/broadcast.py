# broadcast_service/models/broadcast.py
import uuid
from sqlalchemy import Column, String, Text, DateTime, JSON, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from broadcast_service.db.base_class import Base


class Broadcast(Base):
    __tablename__ = "broadcasts"

    id = Column(
        String, primary_key=True, default=lambda: f"bc_{uuid.uuid4().hex[:12]}"
    )
    customer_id = Column(String, nullable=False, index=True)

    # Payload snapshot, written once at creation
    input_kind = Column(String, nullable=False)  # text, voice, image, mixed
    raw_text = Column(Text, nullable=True)
    voice_reference = Column(String, nullable=True)
    image_references = Column(JSON, nullable=True)
    customer_notes = Column(Text, nullable=True)

    # Ordered seller ids as selected by the customer
    seller_ids = Column(JSON, nullable=False)

    # Delivery info (copied, never resolved later)
    delivery_address_snapshot = Column(JSON, nullable=True)
    order_kind = Column(String, nullable=False)  # delivery, pickup

    status = Column(String, nullable=False, server_default="active")
    pricing_deadline = Column(DateTime(timezone=True), nullable=False)
    auto_cancel_deadline = Column(DateTime(timezone=True), nullable=False)

    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    expired_at = Column(DateTime(timezone=True), nullable=True)

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
    requests = relationship(
        "PricingRequest",
        back_populates="broadcast",
        cascade="all, delete-orphan",
        order_by="PricingRequest.created_at",
    )

    __table_args__ = (
        Index("ix_broadcasts_customer_status", "customer_id", "status"),
    )
