# broadcast_service/services/pricing_engine.py
"""
Seller quote submission.

A submission moves one pricing request through
``pending -> claimed -> priced``. The claim is a conditional update on the
request row, so of any number of concurrent submissions for the same
request exactly one gets past it. Each later step undoes the earlier ones
if it fails, and the request always ends either ``priced`` or back at
``pending``.
"""
import logging
from decimal import Decimal
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from broadcast_service.constants.broadcast import OrderKind, PricingRequestStatus
from broadcast_service.core.exceptions import (
    AlreadyClaimedOrPriced,
    ClaimLost,
    DeadlineExpired,
    FinalizationFailure,
    InvalidLineItems,
    LineItemInsertFailure,
    NotFound,
    OrderMaterializationFailure,
)
from broadcast_service.core.config import settings
from broadcast_service.crud import crud_price_history, crud_pricing_request
from broadcast_service.schemas.pricing import (
    Availability,
    PricingLineItemIn,
    PricingResult,
    PricingSubmit,
    quantize_money,
)
from broadcast_service.services.order_materializer import (
    OrderMaterializer,
    SqlOrderMaterializer,
)
from broadcast_service.services.quote_totals import compute_totals
from broadcast_service.services.seller_eligibility import load_seller_config
from broadcast_service.utils import broadcast_notifications
from broadcast_service.utils.time import as_utc, utcnow

logger = logging.getLogger(__name__)


def _substitute_unit_price(item: PricingLineItemIn) -> Decimal:
    if item.substitute_unit_price is not None:
        return item.substitute_unit_price
    quantity = item.substitute_quantity or item.quantity
    return item.effective_substitute_total / quantity


def price_history_entries(
    items: List[PricingLineItemIn], *, order_id: str, pricing_request_id: str
) -> List[dict]:
    """History rows for the lines the customer will actually receive, at the charged price."""
    entries = []
    for item in items:
        if item.availability == Availability.UNAVAILABLE:
            continue
        if item.availability == Availability.SUBSTITUTED:
            entries.append({
                "item_name": item.substitute_name or item.name,
                "unit_kind": item.unit_kind.value,
                "unit_price": quantize_money(_substitute_unit_price(item)),
                "quantity": item.substitute_quantity or item.quantity,
                "order_id": order_id,
                "pricing_request_id": pricing_request_id,
            })
            continue
        entries.append({
            "item_name": item.name,
            "unit_kind": item.unit_kind.value,
            "unit_price": quantize_money(item.unit_price),
            "quantity": item.quantity,
            "order_id": order_id,
            "pricing_request_id": pricing_request_id,
        })
    return entries


class PricingEngine:
    def __init__(
        self,
        db: Session,
        materializer: Optional[OrderMaterializer] = None,
        producer=None,
        clock: Callable = utcnow,
    ):
        self.db = db
        self.materializer = materializer or SqlOrderMaterializer(db)
        self.producer = producer
        self.clock = clock

    def submit(self, *, request_id: str, seller_id: str, data: PricingSubmit) -> PricingResult:
        # Always decide on the stored row, never on what the seller loaded earlier
        state = crud_pricing_request.get_state(self.db, request_id)
        if state is None or state.seller_id != seller_id:
            raise NotFound("Pricing request not found.")

        if state.status != PricingRequestStatus.PENDING:
            logger.warning(
                f"Seller {seller_id} submitted request {request_id} in status {state.status}"
            )
            raise AlreadyClaimedOrPriced()

        if as_utc(state.pricing_expires_at) <= self.clock():
            logger.warning(f"Seller {seller_id} submitted request {request_id} after its deadline")
            raise DeadlineExpired()

        items = list(data.items)
        self._validate_items(seller_id, items)

        if not crud_pricing_request.claim(
            self.db, request_id=request_id, claimed_at=self.clock()
        ):
            logger.warning(f"Seller {seller_id} lost the claim on request {request_id}")
            raise ClaimLost()
        logger.info(f"Request {request_id} claimed by seller {seller_id}")

        delivery_fee = data.delivery_fee
        if delivery_fee is None:
            delivery_fee = state.delivery_fee if state.delivery_fee is not None else Decimal("0")
        totals = compute_totals(items, delivery_fee)

        try:
            order = self.materializer.create_order(
                seller_id=seller_id,
                customer_id=state.customer_id,
                pricing_request_id=request_id,
                totals=totals,
                order_kind=OrderKind.PICKUP,
            )
        except Exception as e:
            logger.error(f"Order creation failed for request {request_id}: {e}", exc_info=True)
            self._release_claim(request_id)
            raise OrderMaterializationFailure() from e

        try:
            self.materializer.add_line_items(
                order_id=order.order_id,
                pricing_request_id=request_id,
                items=items,
            )
        except Exception as e:
            logger.error(
                f"Line items failed for order {order.order_id} (request {request_id}): {e}",
                exc_info=True,
            )
            self._delete_order(order.order_id)
            self._release_claim(request_id)
            raise LineItemInsertFailure() from e

        cause = None
        try:
            finalized = crud_pricing_request.mark_priced(
                self.db,
                request_id=request_id,
                order_id=order.order_id,
                items_count=totals.items_count,
                subtotal=totals.subtotal,
                delivery_fee=totals.delivery_fee,
                total=totals.total,
                priced_at=self.clock(),
            )
        except Exception as e:
            finalized = False
            cause = e
        if not finalized:
            logger.error(
                f"Could not mark request {request_id} priced, removing order {order.order_id}",
                exc_info=cause,
            )
            self._delete_order(order.order_id)
            self._release_claim(request_id)
            raise FinalizationFailure() from cause

        logger.info(
            f"Request {request_id} priced by seller {seller_id}: order {order.order_number}, "
            f"total {totals.total}"
        )

        self._record_price_history(
            seller_id=seller_id,
            customer_id=state.customer_id,
            entries=price_history_entries(
                items, order_id=order.order_id, pricing_request_id=request_id
            ),
        )
        self._notify_priced(
            state,
            seller_id=seller_id,
            order_id=order.order_id,
            order_number=order.order_number,
            total=totals.total,
        )

        return PricingResult(
            request_id=request_id,
            order_id=order.order_id,
            order_number=order.order_number,
            subtotal=float(totals.subtotal),
            delivery_fee=float(totals.delivery_fee),
            total=float(totals.total),
            items_count=totals.items_count,
        )

    # ── Helpers ──────────────────────────────────────────────────────

    def _validate_items(self, seller_id: str, items: List[PricingLineItemIn]) -> None:
        if not items:
            raise InvalidLineItems("At least one line item is required.")
        config = load_seller_config(self.db, seller_id)
        max_items = config.max_items_per_order if config else settings.DEFAULT_MAX_ITEMS_PER_ORDER
        if len(items) > max_items:
            raise InvalidLineItems(f"A quote can have at most {max_items} items.")

    def _release_claim(self, request_id: str) -> None:
        self.db.rollback()
        try:
            if not crud_pricing_request.release_claim(self.db, request_id=request_id):
                logger.warning(f"Request {request_id} was no longer claimed on release")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to release claim on request {request_id}: {e}", exc_info=True)

    def _delete_order(self, order_id: str) -> None:
        self.db.rollback()
        try:
            self.materializer.delete_order(order_id)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete order {order_id}: {e}", exc_info=True)

    def _record_price_history(self, *, seller_id: str, customer_id: str, entries: List[dict]) -> None:
        if not entries:
            return
        try:
            crud_price_history.upsert_many(
                self.db,
                seller_id=seller_id,
                customer_id=customer_id,
                entries=entries,
            )
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Price history update failed for seller {seller_id}: {e}", exc_info=True
            )

    def _notify_priced(self, state, *, seller_id: str, order_id: str, order_number: str, total) -> None:
        try:
            config = load_seller_config(self.db, seller_id)
            broadcast_notifications.notify_pricing_submitted(
                self.producer,
                broadcast_id=state.broadcast_id,
                customer_id=state.customer_id,
                seller_id=seller_id,
                request_id=state.id,
                order_id=order_id,
                order_number=order_number,
                total=total,
                seller_name=config.name if config else None,
            )
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Could not notify customer about priced request {state.id}: {e}", exc_info=True
            )
