# broadcast_service/graphql/queries.py
import strawberry
from typing import List, Optional
from strawberry.types import Info
from fastapi import HTTPException

from ..core.exceptions import BroadcastError
from ..constants.broadcast import PricingRequestStatus
from ..services.broadcast_orchestrator import BroadcastOrchestrator
from .types import (
    BroadcastType,
    PricingRequestType,
    SellerPricingRequestType,
    SellerSummaryType,
)


def _require_user(info: Info) -> dict:
    user = info.context.user
    if not user or not user.get("sub"):
        raise HTTPException(status_code=403, detail="Not authorized")
    return user


def _require_seller(info: Info, seller_id: str) -> dict:
    user = _require_user(info)
    if user.get("sellerId") != seller_id:
        raise HTTPException(status_code=403, detail="Not authorized for this seller")
    return user


def _seller_to_gql(seller) -> Optional[SellerSummaryType]:
    if seller is None:
        return None
    return SellerSummaryType(
        id=seller.id,
        name=seller.name,
        logoUrl=seller.logo_url,
        rating=seller.rating,
        deliveryFee=float(seller.delivery_fee or 0),
    )


def _request_to_gql(rq, with_seller: bool = False) -> PricingRequestType:
    return PricingRequestType(
        id=rq.id,
        broadcastId=rq.broadcast_id,
        sellerId=rq.seller_id,
        status=rq.status,
        itemsCount=rq.items_count or 0,
        subtotal=float(rq.subtotal or 0),
        deliveryFee=float(rq.delivery_fee or 0),
        total=float(rq.total or 0),
        pricingExpiresAt=rq.pricing_expires_at,
        orderId=rq.order_id,
        pricedAt=rq.priced_at,
        seller=_seller_to_gql(rq.seller) if with_seller else None,
    )


def _broadcast_to_gql(bc, requests=None) -> BroadcastType:
    return BroadcastType(
        id=bc.id,
        customerId=bc.customer_id,
        inputKind=bc.input_kind,
        rawText=bc.raw_text,
        voiceReference=bc.voice_reference,
        imageReferences=bc.image_references,
        customerNotes=bc.customer_notes,
        sellerIds=list(bc.seller_ids or []),
        deliveryAddressSnapshot=bc.delivery_address_snapshot,
        orderKind=bc.order_kind,
        status=bc.status,
        pricingDeadline=bc.pricing_deadline,
        autoCancelDeadline=bc.auto_cancel_deadline,
        createdAt=bc.created_at,
        requests=[_request_to_gql(rq, with_seller=True) for rq in (requests or [])],
    )


@strawberry.type
class Query:
    @strawberry.field
    def broadcast(self, id: strawberry.ID, info: Info) -> Optional[BroadcastType]:
        """A broadcast with all of its seller requests, for its owner only."""
        user = _require_user(info)
        orchestrator = BroadcastOrchestrator(info.context.db)
        try:
            bc, requests = orchestrator.get_broadcast_with_requests(
                broadcast_id=str(id), requester_id=user["sub"]
            )
        except BroadcastError as e:
            raise HTTPException(status_code=e.status_code, detail=e.to_detail())
        return _broadcast_to_gql(bc, requests)

    @strawberry.field
    def myActiveBroadcasts(self, info: Info) -> List[BroadcastType]:
        user = _require_user(info)
        broadcasts = BroadcastOrchestrator(info.context.db).list_active_broadcasts(user["sub"])
        return [_broadcast_to_gql(bc) for bc in broadcasts]

    @strawberry.field
    def myBroadcastHistory(self, info: Info, limit: int = 20) -> List[BroadcastType]:
        user = _require_user(info)
        limit = max(1, min(limit, 100))
        broadcasts = BroadcastOrchestrator(info.context.db).list_broadcast_history(
            user["sub"], limit=limit
        )
        return [_broadcast_to_gql(bc) for bc in broadcasts]

    @strawberry.field
    def myActiveBroadcastsCount(self, info: Info) -> int:
        user = _require_user(info)
        return BroadcastOrchestrator(info.context.db).count_active(user["sub"])

    @strawberry.field
    def sellerPricingRequests(
        self,
        sellerId: strawberry.ID,
        info: Info,
        statuses: Optional[List[str]] = None,
    ) -> List[SellerPricingRequestType]:
        """Requests addressed to the seller, nearest deadline first."""
        _require_seller(info, str(sellerId))
        if statuses and any(not PricingRequestStatus.is_valid(s) for s in statuses):
            raise HTTPException(status_code=422, detail="Unknown pricing request status")
        requests = BroadcastOrchestrator(info.context.db).list_seller_requests(
            str(sellerId), statuses
        )
        return [
            SellerPricingRequestType(
                request=_request_to_gql(rq),
                broadcast=_broadcast_to_gql(rq.broadcast),
            )
            for rq in requests
        ]

    @strawberry.field
    def sellerPendingRequestsCount(self, sellerId: strawberry.ID, info: Info) -> int:
        _require_seller(info, str(sellerId))
        return BroadcastOrchestrator(info.context.db).count_pending(str(sellerId))
