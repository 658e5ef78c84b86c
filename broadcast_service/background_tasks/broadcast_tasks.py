# broadcast_service/background_tasks/broadcast_tasks.py
"""
Background task for broadcast and pricing request expiry.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional, Dict

from sqlalchemy.orm import Session

from broadcast_service.core.config import settings
from broadcast_service.crud import crud_broadcast, crud_pricing_request
from broadcast_service.db.session import SessionLocal
from broadcast_service.utils.time import utcnow

logger = logging.getLogger(__name__)


def run_expiry_sweep(db: Session, now: Optional[datetime] = None) -> Dict[str, int]:
    """
    Expire overdue work in three conditional bulk updates:

    1. pending requests past their pricing deadline
    2. claimed requests past their deadline plus the stale-claim grace
    3. active broadcasts past their auto-cancel deadline with no priced
       request, together with their remaining pending requests

    Returns the number of rows moved by each step.
    """
    now = now or utcnow()

    pending = crud_pricing_request.expire_overdue_pending(db, now=now)
    stale_claims = crud_pricing_request.expire_stale_claims(
        db,
        deadline_before=now - timedelta(minutes=settings.CLAIM_STALE_AFTER_MINUTES),
    )
    broadcasts = crud_broadcast.expire_overdue(db, now=now)

    counts = {
        "expired_pending_requests": pending,
        "expired_stale_claims": stale_claims,
        "expired_broadcasts": len(broadcasts),
    }
    if pending or stale_claims or broadcasts:
        logger.info(f"Expiry sweep: {counts}")
    return counts


def expire_overdue_broadcasts():
    """
    Scheduler entry point for the expiry sweep.

    Runs every EXPIRY_SWEEP_INTERVAL_MINUTES.
    """
    db = SessionLocal()
    try:
        return run_expiry_sweep(db)
    except Exception as e:
        db.rollback()
        logger.error(f"Error in expire_overdue_broadcasts task: {str(e)}", exc_info=True)
        return None
    finally:
        db.close()
