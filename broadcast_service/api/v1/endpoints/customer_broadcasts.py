# broadcast_service/api/v1/endpoints/customer_broadcasts.py
"""Customer broadcast endpoints: create, cancel, and read back."""
from typing import List
from fastapi import APIRouter, Depends, status, Query, Request
from sqlalchemy.orm import Session
from kafka import KafkaProducer

from broadcast_service.api import deps
from broadcast_service.core.config import settings
from broadcast_service.core.exceptions import BroadcastError
from broadcast_service.core.kafka_producer import get_kafka_producer
from broadcast_service.core.limiter import limiter
from broadcast_service.schemas.broadcast import (
    BroadcastCreate,
    BroadcastCreateResult,
    BroadcastResponse,
    BroadcastWithRequests,
    CancelBroadcastResult,
    CountResult,
    PricingRequestResponse,
    PricingRequestWithSeller,
)
from broadcast_service.schemas.token import TokenPayload
from broadcast_service.services.broadcast_orchestrator import BroadcastOrchestrator

router = APIRouter(prefix="/broadcasts", tags=["Broadcasts"])


@router.post("", response_model=BroadcastCreateResult, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.BROADCAST_CREATE_RATE_LIMIT)
def create_broadcast(
    request: Request,  # Required for rate limiting
    broadcast_in: BroadcastCreate,
    db: Session = Depends(deps.get_db),
    producer: KafkaProducer = Depends(get_kafka_producer),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Send one order request to up to three sellers at once.

    Every seller gets its own pending pricing request with the same
    pricing deadline.

    **Errors**:
    - 404: Seller or delivery address not found
    - 422: Empty payload, no sellers, too many sellers, or a seller that
      is inactive or does not take custom orders
    - 503: Requests could not be created (nothing was saved)
    """
    orchestrator = BroadcastOrchestrator(db, producer=producer)
    try:
        broadcast, requests = orchestrator.create(
            customer_id=current_user.sub, data=broadcast_in
        )
    except BroadcastError as e:
        raise deps.to_http_exception(e) from e

    return BroadcastCreateResult(
        broadcast=BroadcastResponse.model_validate(broadcast),
        requests=[PricingRequestResponse.model_validate(rq) for rq in requests],
    )


@router.get("/active", response_model=List[BroadcastResponse])
def list_active_broadcasts(
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """The caller's broadcasts that are still waiting for quotes, newest first."""
    return BroadcastOrchestrator(db).list_active_broadcasts(current_user.sub)


@router.get("/active/count", response_model=CountResult)
def count_active_broadcasts(
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    return CountResult(count=BroadcastOrchestrator(db).count_active(current_user.sub))


@router.get("/history", response_model=List[BroadcastResponse])
def list_broadcast_history(
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """All of the caller's broadcasts in any status, newest first."""
    return BroadcastOrchestrator(db).list_broadcast_history(current_user.sub, limit=limit)


@router.get("/{broadcastId}", response_model=BroadcastWithRequests)
def get_broadcast(
    broadcastId: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """A broadcast with every seller's request, for comparing quotes."""
    try:
        broadcast, requests = BroadcastOrchestrator(db).get_broadcast_with_requests(
            broadcast_id=broadcastId, requester_id=current_user.sub
        )
    except BroadcastError as e:
        raise deps.to_http_exception(e) from e

    return BroadcastWithRequests(
        **BroadcastResponse.model_validate(broadcast).model_dump(),
        requests=[PricingRequestWithSeller.model_validate(rq) for rq in requests],
    )


@router.post("/{broadcastId}/cancel", response_model=CancelBroadcastResult)
def cancel_broadcast(
    broadcastId: str,
    db: Session = Depends(deps.get_db),
    producer: KafkaProducer = Depends(get_kafka_producer),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Cancel an active broadcast.

    Requests still pending are cancelled with it. Requests a seller has
    already claimed or priced are left as they are.
    """
    orchestrator = BroadcastOrchestrator(db, producer=producer)
    try:
        success = orchestrator.cancel(broadcast_id=broadcastId, customer_id=current_user.sub)
    except BroadcastError as e:
        raise deps.to_http_exception(e) from e
    return CancelBroadcastResult(success=success)
