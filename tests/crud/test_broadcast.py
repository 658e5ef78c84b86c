# tests/crud/test_broadcast.py

from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

from sqlalchemy import event

from broadcast_service.crud import crud_broadcast, crud_pricing_request
from broadcast_service.models.broadcast import Broadcast
from broadcast_service.models.pricing_request import PricingRequest
from broadcast_service.services.broadcast_orchestrator import BroadcastOrchestrator
from broadcast_service.utils.time import utcnow
from tests.utils.factories import create_seller, text_broadcast


def test_cancel_is_conditional_on_active(db):
    seller = create_seller(db)
    broadcast, _ = BroadcastOrchestrator(db).create(
        customer_id="cust_1", data=text_broadcast([seller.id])
    )

    assert crud_broadcast.cancel(db, broadcast_id=broadcast.id, cancelled_at=utcnow()) == 1
    # Second attempt finds nothing active
    assert crud_broadcast.cancel(db, broadcast_id=broadcast.id, cancelled_at=utcnow()) is None


def test_delete_removes_broadcast_and_requests(db):
    sellers = [create_seller(db), create_seller(db)]
    broadcast, _ = BroadcastOrchestrator(db).create(
        customer_id="cust_1", data=text_broadcast([s.id for s in sellers])
    )
    broadcast_id = broadcast.id

    assert crud_broadcast.delete(db, broadcast_id=broadcast_id) == 1
    assert db.query(Broadcast).count() == 0
    assert db.query(PricingRequest).filter(PricingRequest.broadcast_id == broadcast_id).count() == 0


def test_create_commits_and_refreshes():
    db_session = MagicMock()

    crud_broadcast.create(
        db_session,
        customer_id="cust_1",
        input_kind="text",
        payload_fields={"raw_text": "rice"},
        seller_ids=["slr_1"],
        delivery_address_snapshot=None,
        order_kind="delivery",
        pricing_deadline=utcnow(),
        auto_cancel_deadline=utcnow(),
    )

    db_session.add.assert_called_once()
    db_session.commit.assert_called_once()
    db_session.refresh.assert_called_once()


def test_expire_overdue_skips_broadcast_priced_after_selection(db, session_factory):
    # Quotes stay open for a day but the broadcast auto-cancels after an hour
    seller = create_seller(db, settings={"pricing_timeout_hours": 24, "auto_cancel_after_hours": 1})
    broadcast, requests = BroadcastOrchestrator(db).create(
        customer_id="cust_1", data=text_broadcast([seller.id])
    )
    broadcast_id = broadcast.id
    request_id = requests[0].id
    priced = []

    def price_before_update(orm_execute_state):
        if not orm_execute_state.is_update or priced:
            return
        other = session_factory()
        try:
            assert crud_pricing_request.claim(other, request_id=request_id, claimed_at=utcnow())
            assert crud_pricing_request.mark_priced(
                other,
                request_id=request_id,
                order_id="ord_late",
                items_count=1,
                subtotal=Decimal("20.00"),
                delivery_fee=Decimal("5.00"),
                total=Decimal("25.00"),
                priced_at=utcnow(),
            )
        finally:
            other.close()
        priced.append(request_id)

    event.listen(db, "do_orm_execute", price_before_update)
    try:
        expired = crud_broadcast.expire_overdue(db, now=utcnow() + timedelta(hours=2))
    finally:
        event.remove(db, "do_orm_execute", price_before_update)

    assert priced == [request_id]
    assert expired == []
    db.expire_all()
    assert db.query(Broadcast).filter(Broadcast.id == broadcast_id).one().status == "active"
    assert db.query(PricingRequest).filter(PricingRequest.id == request_id).one().status == "priced"


def test_expire_overdue_returns_only_expired_ids(db):
    sellers = [create_seller(db), create_seller(db)]
    orchestrator = BroadcastOrchestrator(db)
    quiet, _ = orchestrator.create(customer_id="cust_1", data=text_broadcast([sellers[0].id]))
    quoted, quoted_requests = orchestrator.create(
        customer_id="cust_2", data=text_broadcast([sellers[1].id])
    )
    quiet_id = quiet.id
    crud_pricing_request.claim(db, request_id=quoted_requests[0].id, claimed_at=utcnow())
    crud_pricing_request.mark_priced(
        db,
        request_id=quoted_requests[0].id,
        order_id="ord_1",
        items_count=1,
        subtotal=Decimal("10.00"),
        delivery_fee=Decimal("0.00"),
        total=Decimal("10.00"),
        priced_at=utcnow(),
    )

    assert crud_broadcast.expire_overdue(db, now=utcnow() + timedelta(hours=100)) == [quiet_id]
