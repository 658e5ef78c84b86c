# broadcast_service/api/v1/endpoints/internals.py
from typing import Dict
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from broadcast_service.api import deps
from broadcast_service.background_tasks.broadcast_tasks import run_expiry_sweep

router = APIRouter(tags=["Internal"])


@router.post("/internal/broadcasts/expire", response_model=Dict[str, int])
def expire_broadcasts(
    db: Session = Depends(deps.get_db),
    api_key: str = Depends(deps.get_internal_api_key),
):
    """
    Run the expiry sweep once. Used by external schedulers and operators
    when the in-process scheduler is disabled.
    """
    return run_expiry_sweep(db)
