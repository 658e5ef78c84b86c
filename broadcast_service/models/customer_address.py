# broadcast_service/models/customer_address.py
import uuid
from sqlalchemy import Column, String, Float, DateTime
from sqlalchemy.sql import func
from broadcast_service.db.base_class import Base


class CustomerAddress(Base):
    __tablename__ = "customer_addresses"

    id = Column(
        String, primary_key=True, default=lambda: f"adr_{uuid.uuid4().hex[:12]}"
    )
    customer_id = Column(String, nullable=False, index=True)
    label = Column(String, nullable=True)
    street = Column(String, nullable=False)
    building = Column(String, nullable=True)
    city = Column(String, nullable=False)
    district = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    notes = Column(String, nullable=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    def snapshot(self) -> dict:
        """Copy of the address fields, detached from this row."""
        return {
            "address_id": self.id,
            "label": self.label,
            "street": self.street,
            "building": self.building,
            "city": self.city,
            "district": self.district,
            "phone": self.phone,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "notes": self.notes,
        }
