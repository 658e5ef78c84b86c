# broadcast_service/api/v1/endpoints/seller_pricing.py
"""Seller pricing endpoints: inbox, request detail, and quote submission."""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.orm import Session
from kafka import KafkaProducer

from broadcast_service.api import deps
from broadcast_service.constants.broadcast import PricingRequestStatus
from broadcast_service.core.config import settings
from broadcast_service.core.exceptions import BroadcastError
from broadcast_service.core.kafka_producer import get_kafka_producer
from broadcast_service.core.limiter import limiter
from broadcast_service.schemas.broadcast import CountResult
from broadcast_service.schemas.pricing import (
    PriceHistoryItem,
    PricingResult,
    PricingSubmit,
    SellerPricingRequestDetail,
    SellerPricingRequestItem,
)
from broadcast_service.schemas.token import TokenPayload
from broadcast_service.services.broadcast_orchestrator import BroadcastOrchestrator
from broadcast_service.services.pricing_engine import PricingEngine

router = APIRouter(prefix="/sellers/{sellerId}", tags=["Seller Pricing"])


@router.get("/pricing-requests", response_model=List[SellerPricingRequestItem])
def list_pricing_requests(
    sellerId: str,
    status_filter: Optional[List[str]] = Query(default=None, alias="status"),
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Requests addressed to this seller, nearest deadline first. Defaults to pending."""
    deps.require_seller(sellerId, current_user)

    statuses = status_filter or [PricingRequestStatus.PENDING]
    invalid = [s for s in statuses if not PricingRequestStatus.is_valid(s)]
    if invalid:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown status: {', '.join(invalid)}",
        )

    requests = BroadcastOrchestrator(db).list_seller_requests(sellerId, statuses)
    return [SellerPricingRequestItem.from_request(rq) for rq in requests]


@router.get("/pricing-requests/count", response_model=CountResult)
def count_pending_requests(
    sellerId: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    deps.require_seller(sellerId, current_user)
    return CountResult(count=BroadcastOrchestrator(db).count_pending(sellerId))


@router.get("/pricing-requests/{requestId}", response_model=SellerPricingRequestDetail)
def get_pricing_request(
    sellerId: str,
    requestId: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    One request with the customer's original input and, if enabled, the
    prices this seller quoted the same customer before.
    """
    deps.require_seller(sellerId, current_user)
    try:
        rq, history = BroadcastOrchestrator(db).get_seller_request_detail(
            seller_id=sellerId, request_id=requestId
        )
    except BroadcastError as e:
        raise deps.to_http_exception(e) from e

    return SellerPricingRequestDetail.from_request(
        rq, price_history=[PriceHistoryItem.from_entry(entry) for entry in history]
    )


@router.post("/pricing-requests/{requestId}/submit", response_model=PricingResult)
@limiter.limit(settings.PRICING_SUBMIT_RATE_LIMIT)
def submit_pricing(
    request: Request,  # Required for rate limiting
    sellerId: str,
    requestId: str,
    pricing_in: PricingSubmit,
    db: Session = Depends(deps.get_db),
    producer: KafkaProducer = Depends(get_kafka_producer),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Price a request and create the order for it.

    **Errors**:
    - 404: Request not found for this seller
    - 409: Request already claimed or priced, or another submission won
    - 410: Pricing deadline has passed
    - 422: Invalid line items
    - 503: Order could not be saved; the request is pending again
    """
    deps.require_seller(sellerId, current_user)
    engine = PricingEngine(db, producer=producer)
    try:
        return engine.submit(request_id=requestId, seller_id=sellerId, data=pricing_in)
    except BroadcastError as e:
        raise deps.to_http_exception(e) from e


@router.get("/price-history", response_model=List[PriceHistoryItem])
def list_price_history(
    sellerId: str,
    customer_id: str = Query(..., min_length=1),
    limit: int = Query(default=50, ge=1, le=100),
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Prices this seller last quoted the given customer, most recent first."""
    deps.require_seller(sellerId, current_user)
    entries = BroadcastOrchestrator(db).list_price_history(
        seller_id=sellerId, customer_id=customer_id, limit=limit
    )
    return [PriceHistoryItem.from_entry(entry) for entry in entries]
