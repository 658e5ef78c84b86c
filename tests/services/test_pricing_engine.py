# tests/services/test_pricing_engine.py

import threading
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

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
from broadcast_service.crud import crud_pricing_request
from broadcast_service.models.order import Order
from broadcast_service.models.order_line_item import OrderLineItem
from broadcast_service.models.price_history import PriceHistoryEntry
from broadcast_service.models.pricing_request import PricingRequest
from broadcast_service.schemas.pricing import PricingLineItemIn, PricingSubmit
from broadcast_service.services.broadcast_orchestrator import BroadcastOrchestrator
from broadcast_service.services.order_materializer import (
    OrderMaterializer,
    SqlOrderMaterializer,
)
from broadcast_service.services.pricing_engine import PricingEngine
from broadcast_service.services.seller_eligibility import load_seller_config
from broadcast_service.utils.time import utcnow
from tests.utils.factories import create_seller, text_broadcast, two_item_quote


@pytest.fixture
def seller(db):
    return create_seller(db, delivery_fee=Decimal("8.00"))


@pytest.fixture
def request_id(db, seller):
    _, requests = BroadcastOrchestrator(db).create(
        customer_id="cust_1", data=text_broadcast([seller.id])
    )
    return requests[0].id


def _request(db, request_id):
    db.expire_all()
    return db.query(PricingRequest).filter(PricingRequest.id == request_id).one()


def test_submit_prices_request_and_creates_order(db, seller, request_id):
    producer = MagicMock()
    result = PricingEngine(db, producer=producer).submit(
        request_id=request_id, seller_id=seller.id, data=two_item_quote()
    )

    assert result.subtotal == 40.0
    assert result.delivery_fee == 10.0
    assert result.total == 50.0
    assert result.items_count == 2

    rq = _request(db, request_id)
    assert rq.status == "priced"
    assert rq.order_id == result.order_id
    assert rq.total == Decimal("50.00")
    assert rq.priced_at is not None

    order = db.query(Order).filter(Order.id == result.order_id).one()
    assert order.customer_id == "cust_1"
    assert order.pricing_request_id == request_id
    assert order.order_number == result.order_number
    assert db.query(OrderLineItem).filter(OrderLineItem.order_id == order.id).count() == 2
    producer.send.assert_called_once()


def test_missing_delivery_fee_uses_seller_fee(db, seller, request_id):
    result = PricingEngine(db).submit(
        request_id=request_id, seller_id=seller.id, data=two_item_quote(delivery_fee=None)
    )
    assert result.delivery_fee == 8.0
    assert result.total == 48.0


def test_unavailable_items_are_not_counted(db, seller, request_id):
    data = PricingSubmit(
        items=[
            PricingLineItemIn(name="Milk", unit_kind="liter", unit_price=Decimal("2.00"), quantity=Decimal("3")),
            PricingLineItemIn(
                name="Saffron", unit_kind="gram", unit_price=Decimal("9.00"),
                quantity=Decimal("1"), availability="unavailable",
            ),
        ],
        delivery_fee=Decimal("0"),
    )
    result = PricingEngine(db).submit(request_id=request_id, seller_id=seller.id, data=data)

    assert result.subtotal == 6.0
    assert result.items_count == 1
    names = {row.item_name for row in db.query(PriceHistoryEntry).all()}
    assert names == {"Milk"}


def test_second_submit_sees_already_priced(db, seller, request_id):
    engine = PricingEngine(db)
    engine.submit(request_id=request_id, seller_id=seller.id, data=two_item_quote())

    with pytest.raises(AlreadyClaimedOrPriced):
        engine.submit(request_id=request_id, seller_id=seller.id, data=two_item_quote())
    assert db.query(Order).count() == 1


def test_other_seller_cannot_submit(db, request_id):
    intruder = create_seller(db)
    with pytest.raises(NotFound):
        PricingEngine(db).submit(request_id=request_id, seller_id=intruder.id, data=two_item_quote())


def test_expired_deadline_changes_nothing(db, seller, request_id):
    db.query(PricingRequest).filter(PricingRequest.id == request_id).update(
        {"pricing_expires_at": utcnow() - timedelta(seconds=1)}, synchronize_session=False
    )
    db.commit()

    with pytest.raises(DeadlineExpired):
        PricingEngine(db).submit(request_id=request_id, seller_id=seller.id, data=two_item_quote())

    rq = _request(db, request_id)
    assert rq.status == "pending"
    assert rq.order_id is None
    assert db.query(Order).count() == 0


def test_too_many_items_rejected_before_claim(db, request_id):
    seller = db.query(PricingRequest).filter(PricingRequest.id == request_id).one().seller
    seller.custom_order_settings = {"max_items_per_order": 1}
    db.commit()

    with pytest.raises(InvalidLineItems):
        PricingEngine(db).submit(request_id=request_id, seller_id=seller.id, data=two_item_quote())
    assert _request(db, request_id).status == "pending"


def test_claim_lost_when_another_writer_got_there_first(db, seller, request_id):
    """The stored row was claimed after this caller read it as pending."""
    stale = crud_pricing_request.get_state(db, request_id)
    crud_pricing_request.claim(db, request_id=request_id, claimed_at=utcnow())

    with patch.object(crud_pricing_request, "get_state", return_value=stale):
        with pytest.raises(ClaimLost):
            PricingEngine(db).submit(request_id=request_id, seller_id=seller.id, data=two_item_quote())

    assert _request(db, request_id).status == "claimed"
    assert db.query(Order).count() == 0


def test_order_failure_returns_request_to_pending(db, seller, request_id):
    materializer = MagicMock(spec=OrderMaterializer)
    materializer.create_order.side_effect = RuntimeError("orders table unavailable")

    with pytest.raises(OrderMaterializationFailure):
        PricingEngine(db, materializer=materializer).submit(
            request_id=request_id, seller_id=seller.id, data=two_item_quote()
        )

    rq = _request(db, request_id)
    assert rq.status == "pending"
    assert rq.order_id is None
    assert db.query(Order).count() == 0
    materializer.add_line_items.assert_not_called()


class _FailingLineItems(SqlOrderMaterializer):
    def add_line_items(self, **kwargs):
        raise RuntimeError("line items rejected")


def test_line_item_failure_deletes_order(db, seller, request_id):
    with pytest.raises(LineItemInsertFailure):
        PricingEngine(db, materializer=_FailingLineItems(db)).submit(
            request_id=request_id, seller_id=seller.id, data=two_item_quote()
        )

    assert _request(db, request_id).status == "pending"
    assert db.query(Order).count() == 0
    assert db.query(OrderLineItem).count() == 0


def test_finalization_failure_deletes_order(db, seller, request_id):
    with patch.object(crud_pricing_request, "mark_priced", return_value=False):
        with pytest.raises(FinalizationFailure):
            PricingEngine(db).submit(request_id=request_id, seller_id=seller.id, data=two_item_quote())

    assert _request(db, request_id).status == "pending"
    assert db.query(Order).count() == 0


def test_retry_after_rollback_succeeds(db, seller, request_id):
    materializer = MagicMock(spec=OrderMaterializer)
    materializer.create_order.side_effect = RuntimeError("temporary")
    with pytest.raises(OrderMaterializationFailure):
        PricingEngine(db, materializer=materializer).submit(
            request_id=request_id, seller_id=seller.id, data=two_item_quote()
        )

    result = PricingEngine(db).submit(request_id=request_id, seller_id=seller.id, data=two_item_quote())
    assert result.total == 50.0
    assert _request(db, request_id).status == "priced"


def test_price_history_failure_does_not_fail_submit(db, seller, request_id):
    with patch(
        "broadcast_service.crud.crud_price_history.upsert_many",
        side_effect=RuntimeError("history down"),
    ):
        result = PricingEngine(db).submit(
            request_id=request_id, seller_id=seller.id, data=two_item_quote()
        )

    assert result.total == 50.0
    assert _request(db, request_id).status == "priced"
    assert db.query(PriceHistoryEntry).count() == 0


def test_substitute_recorded_under_substitute_name(db, seller, request_id):
    data = PricingSubmit(
        items=[
            PricingLineItemIn(
                name="Basmati Rice", unit_kind="bag", unit_price=Decimal("15.00"),
                quantity=Decimal("1"), availability="substituted",
                substitute_name="Jasmine Rice", substitute_unit_price=Decimal("13.00"),
                substitute_quantity=Decimal("1"),
            ),
        ],
        delivery_fee=Decimal("0"),
    )
    result = PricingEngine(db).submit(request_id=request_id, seller_id=seller.id, data=data)

    assert result.subtotal == 13.0
    entry = db.query(PriceHistoryEntry).one()
    assert entry.item_name == "Jasmine Rice"
    assert entry.unit_price == Decimal("13.00")


def test_unnamed_substitute_recorded_at_charged_price(db, seller, request_id):
    data = PricingSubmit(
        items=[
            PricingLineItemIn(
                name="Basmati Rice", unit_kind="bag", unit_price=Decimal("15.00"),
                quantity=Decimal("2"), availability="substituted",
                substitute_quantity=Decimal("2"), substitute_total=Decimal("26.00"),
            ),
        ],
        delivery_fee=Decimal("0"),
    )
    result = PricingEngine(db).submit(request_id=request_id, seller_id=seller.id, data=data)

    assert result.subtotal == 26.0
    entry = db.query(PriceHistoryEntry).one()
    assert entry.item_name == "Basmati Rice"
    assert entry.unit_price == Decimal("13.00")


def test_notification_lookup_failure_does_not_fail_submit(db, seller, request_id):
    calls = []

    def lookup_fails_after_pricing(session, seller_id):
        calls.append(seller_id)
        if len(calls) > 1:
            raise RuntimeError("connection reset")
        return load_seller_config(session, seller_id)

    producer = MagicMock()
    with patch(
        "broadcast_service.services.pricing_engine.load_seller_config",
        side_effect=lookup_fails_after_pricing,
    ):
        result = PricingEngine(db, producer=producer).submit(
            request_id=request_id, seller_id=seller.id, data=two_item_quote()
        )

    assert len(calls) == 2
    assert result.total == 50.0
    assert _request(db, request_id).status == "priced"
    assert db.query(Order).filter(Order.id == result.order_id).count() == 1
    producer.send.assert_not_called()


def test_concurrent_submits_produce_one_order(session_factory, db, seller, request_id):
    """Two submissions race for the same request; exactly one wins."""
    seller_id = seller.id
    barrier = threading.Barrier(2)
    outcomes = []
    lock = threading.Lock()

    def submit():
        session = session_factory()
        try:
            barrier.wait()
            outcome = PricingEngine(session).submit(
                request_id=request_id, seller_id=seller_id, data=two_item_quote()
            )
        except Exception as e:
            outcome = e
        finally:
            session.close()
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=submit) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    winners = [o for o in outcomes if not isinstance(o, Exception)]
    losers = [o for o in outcomes if isinstance(o, Exception)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert isinstance(losers[0], (ClaimLost, AlreadyClaimedOrPriced))
    assert winners[0].total == 50.0

    rq = _request(db, request_id)
    assert rq.status == "priced"
    assert rq.order_id == winners[0].order_id
    assert db.query(Order).count() == 1
