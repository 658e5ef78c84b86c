# broadcast_service/models/seller.py
import uuid
from sqlalchemy import (
    Column, String, Boolean, Float, DateTime, Numeric, JSON, text
)
from sqlalchemy.sql import func
from broadcast_service.db.base_class import Base


class Seller(Base):
    __tablename__ = "sellers"

    id = Column(
        String, primary_key=True, default=lambda: f"slr_{uuid.uuid4().hex[:12]}"
    )
    owner_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    logo_url = Column(String, nullable=True)
    rating = Column(Float, nullable=True)

    is_active = Column(Boolean, nullable=False, server_default=text("true"))
    is_approved = Column(Boolean, nullable=False, server_default=text("false"))
    operation_mode = Column(String, nullable=False, server_default="standard")  # standard, custom, hybrid

    delivery_fee = Column(Numeric(12, 2), nullable=False, server_default="0")
    # pricing_timeout_hours, auto_cancel_after_hours, max_items_per_order, ...
    custom_order_settings = Column(JSON, nullable=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
