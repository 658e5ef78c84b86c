# broadcast_service/services/broadcast_orchestrator.py
"""
Broadcast creation, fan-out and cancellation, plus the customer and
seller read surface over broadcasts.
"""
import logging
from datetime import timedelta
from typing import Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from broadcast_service.constants.broadcast import BroadcastStatus, PricingRequestStatus
from broadcast_service.core.exceptions import (
    AddressNotFound,
    EmptyPayload,
    FanOutPersistenceFailure,
    NotActive,
    NotFound,
    SellerNotCapable,
    Unauthorized,
)
from broadcast_service.crud import (
    crud_address,
    crud_broadcast,
    crud_price_history,
    crud_pricing_request,
)
from broadcast_service.models.broadcast import Broadcast
from broadcast_service.models.price_history import PriceHistoryEntry
from broadcast_service.models.pricing_request import PricingRequest
from broadcast_service.schemas.broadcast import BroadcastCreate
from broadcast_service.services.seller_eligibility import (
    SellerConfig,
    load_seller_config,
    validate_sellers,
)
from broadcast_service.utils import broadcast_notifications
from broadcast_service.utils.time import utcnow

logger = logging.getLogger(__name__)

PRICE_HISTORY_LIMIT = 50


def _check_media_accepted(payload_fields: dict, configs: List[SellerConfig]) -> None:
    """Reject sellers who switched off the kind of input the customer sent."""
    needed = []
    if payload_fields.get("raw_text"):
        needed.append("text")
    if payload_fields.get("voice_reference"):
        needed.append("voice")
    if payload_fields.get("image_references"):
        needed.append("image")

    refusing = [
        config.seller_id
        for config in configs
        if any(kind not in config.accepted_inputs for kind in needed)
    ]
    if refusing:
        raise SellerNotCapable(
            f"Seller(s) do not accept this kind of request: {', '.join(refusing)}"
        )


def sort_requests(broadcast: Broadcast, requests: List[PricingRequest]) -> List[PricingRequest]:
    """Order requests the way the customer listed the sellers."""
    position = {seller_id: i for i, seller_id in enumerate(broadcast.seller_ids or [])}
    return sorted(requests, key=lambda rq: position.get(rq.seller_id, len(position)))


class BroadcastOrchestrator:
    def __init__(
        self,
        db: Session,
        producer=None,
        clock: Callable = utcnow,
    ):
        self.db = db
        self.producer = producer
        self.clock = clock

    # ── Commands ─────────────────────────────────────────────────────

    def create(
        self, *, customer_id: str, data: BroadcastCreate
    ) -> Tuple[Broadcast, List[PricingRequest]]:
        """
        Validate the sellers, snapshot the request and fan it out into one
        pending pricing request per seller.

        If the requests cannot be written the broadcast is deleted again,
        so a broadcast never exists without its requests.
        """
        payload = data.payload
        if not payload.has_content():
            raise EmptyPayload()
        payload_fields = payload.snapshot_fields()

        configs = validate_sellers(self.db, data.seller_ids)
        _check_media_accepted(payload_fields, configs)

        address_snapshot = None
        if data.delivery_address_id:
            address = crud_address.get_for_customer(
                self.db, data.delivery_address_id, customer_id
            )
            if address is None:
                raise AddressNotFound()
            address_snapshot = address.snapshot()

        now = self.clock()
        pricing_deadline = now + timedelta(
            hours=min(c.pricing_timeout_hours for c in configs)
        )
        auto_cancel_deadline = now + timedelta(
            hours=max(c.auto_cancel_after_hours for c in configs)
        )

        try:
            broadcast = crud_broadcast.create(
                self.db,
                customer_id=customer_id,
                input_kind=payload.input_kind,
                payload_fields=payload_fields,
                seller_ids=[c.seller_id for c in configs],
                delivery_address_snapshot=address_snapshot,
                order_kind=data.order_kind.value,
                pricing_deadline=pricing_deadline,
                auto_cancel_deadline=auto_cancel_deadline,
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to persist broadcast for customer {customer_id}: {e}", exc_info=True)
            raise FanOutPersistenceFailure() from e

        broadcast_id = broadcast.id
        try:
            requests = crud_pricing_request.create_many(
                self.db,
                broadcast_id=broadcast_id,
                pricing_expires_at=pricing_deadline,
                sellers=configs,
            )
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Fan-out failed for broadcast {broadcast_id}, deleting it: {e}",
                exc_info=True,
            )
            try:
                crud_broadcast.delete(self.db, broadcast_id=broadcast_id)
            except Exception as cleanup_error:
                self.db.rollback()
                logger.error(
                    f"Could not delete broadcast {broadcast_id} after failed fan-out: {cleanup_error}",
                    exc_info=True,
                )
            raise FanOutPersistenceFailure() from e

        logger.info(
            f"Broadcast {broadcast_id} created for customer {customer_id} "
            f"with {len(requests)} sellers, pricing deadline {pricing_deadline.isoformat()}"
        )
        broadcast_notifications.notify_broadcast_created(
            self.producer,
            broadcast_id=broadcast_id,
            customer_id=customer_id,
            requests=[{"id": rq.id, "seller_id": rq.seller_id} for rq in requests],
            pricing_deadline=pricing_deadline.isoformat(),
        )
        return broadcast, requests

    def cancel(self, *, broadcast_id: str, customer_id: str) -> bool:
        """
        Cancel an active broadcast. Pending requests are cancelled with it;
        claimed and priced requests are left alone.
        """
        broadcast = crud_broadcast.get_simple(self.db, broadcast_id)
        if broadcast is None:
            raise NotFound()
        if broadcast.customer_id != customer_id:
            raise Unauthorized()
        if broadcast.status != BroadcastStatus.ACTIVE:
            raise NotActive()

        seller_ids = list(broadcast.seller_ids or [])
        cancelled = crud_broadcast.cancel(
            self.db, broadcast_id=broadcast_id, cancelled_at=self.clock()
        )
        if cancelled is None:
            # Expired or cancelled between the read and the update
            raise NotActive()

        logger.info(
            f"Broadcast {broadcast_id} cancelled by customer {customer_id}, "
            f"{cancelled} pending requests cancelled"
        )
        broadcast_notifications.notify_broadcast_cancelled(
            self.producer,
            broadcast_id=broadcast_id,
            customer_id=customer_id,
            seller_ids=seller_ids,
        )
        return True

    # ── Customer reads ───────────────────────────────────────────────

    def get_broadcast_with_requests(
        self, *, broadcast_id: str, requester_id: str
    ) -> Tuple[Broadcast, List[PricingRequest]]:
        broadcast = crud_broadcast.get(self.db, broadcast_id)
        if broadcast is None:
            raise NotFound()
        if broadcast.customer_id != requester_id:
            raise Unauthorized()
        return broadcast, sort_requests(broadcast, list(broadcast.requests))

    def list_active_broadcasts(self, customer_id: str) -> List[Broadcast]:
        return crud_broadcast.list_active_by_customer(self.db, customer_id)

    def list_broadcast_history(self, customer_id: str, limit: int = 20) -> List[Broadcast]:
        return crud_broadcast.list_history_by_customer(self.db, customer_id, limit=limit)

    def count_active(self, customer_id: str) -> int:
        return crud_broadcast.count_active_by_customer(self.db, customer_id)

    # ── Seller reads ─────────────────────────────────────────────────

    def list_seller_requests(
        self, seller_id: str, statuses: Optional[List[str]] = None
    ) -> List[PricingRequest]:
        if not statuses:
            statuses = [PricingRequestStatus.PENDING]
        return crud_pricing_request.list_for_seller(self.db, seller_id, statuses)

    def count_pending(self, seller_id: str) -> int:
        return crud_pricing_request.count_pending_for_seller(self.db, seller_id)

    def get_seller_request_detail(
        self, *, seller_id: str, request_id: str
    ) -> Tuple[PricingRequest, List[PriceHistoryEntry]]:
        """
        A seller's request with the customer's past prices for pre-filling,
        when the seller has price history switched on.
        """
        rq = crud_pricing_request.get_for_seller(
            self.db, request_id=request_id, seller_id=seller_id
        )
        if rq is None:
            raise NotFound("Pricing request not found.")

        history = []
        config = load_seller_config(self.db, seller_id)
        if config is not None and config.show_price_history:
            history = crud_price_history.list_for_customer(
                self.db,
                seller_id=seller_id,
                customer_id=rq.broadcast.customer_id,
                limit=PRICE_HISTORY_LIMIT,
            )
        return rq, history

    def list_price_history(
        self, *, seller_id: str, customer_id: str, limit: int = PRICE_HISTORY_LIMIT
    ) -> List[PriceHistoryEntry]:
        return crud_price_history.list_for_customer(
            self.db, seller_id=seller_id, customer_id=customer_id, limit=limit
        )
