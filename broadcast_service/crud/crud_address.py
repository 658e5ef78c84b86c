# broadcast_service/crud/crud_address.py
from typing import Optional
from sqlalchemy.orm import Session

from broadcast_service.models.customer_address import CustomerAddress


def get_for_customer(
    db: Session, address_id: str, customer_id: str
) -> Optional[CustomerAddress]:
    return (
        db.query(CustomerAddress)
        .filter(
            CustomerAddress.id == address_id,
            CustomerAddress.customer_id == customer_id,
        )
        .first()
    )
