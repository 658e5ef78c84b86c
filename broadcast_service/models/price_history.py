# broadcast_service/models/price_history.py
import uuid
from sqlalchemy import Column, String, DateTime, Numeric, UniqueConstraint
from sqlalchemy.sql import func
from broadcast_service.db.base_class import Base


class PriceHistoryEntry(Base):
    __tablename__ = "price_history"

    id = Column(
        String, primary_key=True, default=lambda: f"phe_{uuid.uuid4().hex[:12]}"
    )
    seller_id = Column(String, nullable=False, index=True)
    customer_id = Column(String, nullable=False, index=True)

    item_name_normalized = Column(String(200), nullable=False)
    item_name = Column(String(200), nullable=False)  # as last quoted

    unit_kind = Column(String(20), nullable=True)
    unit_price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=True)

    # Last quote that touched this entry
    order_id = Column(String, nullable=True)
    pricing_request_id = Column(String, nullable=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint(
            "seller_id", "customer_id", "item_name_normalized",
            name="uq_price_history_seller_customer_item",
        ),
    )
