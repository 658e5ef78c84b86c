# broadcast_service/crud/crud_seller.py
from typing import Optional, List
from sqlalchemy.orm import Session

from broadcast_service.models.seller import Seller


def get(db: Session, seller_id: str) -> Optional[Seller]:
    return db.query(Seller).filter(Seller.id == seller_id).first()


def get_many(db: Session, seller_ids: List[str]) -> List[Seller]:
    """Batch-load sellers; order is not guaranteed."""
    if not seller_ids:
        return []
    return db.query(Seller).filter(Seller.id.in_(seller_ids)).all()
