# tests/crud/test_pricing_request.py

from datetime import timedelta
from decimal import Decimal

from broadcast_service.crud import crud_pricing_request
from broadcast_service.models.pricing_request import PricingRequest
from broadcast_service.services.broadcast_orchestrator import BroadcastOrchestrator
from broadcast_service.utils.time import utcnow
from tests.utils.factories import create_seller, text_broadcast


def _single_request(db):
    seller = create_seller(db)
    _, requests = BroadcastOrchestrator(db).create(
        customer_id="cust_1", data=text_broadcast([seller.id])
    )
    return requests[0].id


def _status(db, request_id):
    db.expire_all()
    return db.query(PricingRequest).filter(PricingRequest.id == request_id).one().status


def test_claim_succeeds_once(db):
    request_id = _single_request(db)

    assert crud_pricing_request.claim(db, request_id=request_id, claimed_at=utcnow()) is True
    assert crud_pricing_request.claim(db, request_id=request_id, claimed_at=utcnow()) is False
    assert _status(db, request_id) == "claimed"


def test_release_claim_returns_request_to_pending(db):
    request_id = _single_request(db)
    crud_pricing_request.claim(db, request_id=request_id, claimed_at=utcnow())

    assert crud_pricing_request.release_claim(db, request_id=request_id) is True
    assert _status(db, request_id) == "pending"
    # Nothing left to release
    assert crud_pricing_request.release_claim(db, request_id=request_id) is False


def test_mark_priced_requires_a_claim(db):
    request_id = _single_request(db)
    kwargs = dict(
        request_id=request_id,
        order_id="ord_abc",
        items_count=2,
        subtotal=Decimal("40.00"),
        delivery_fee=Decimal("10.00"),
        total=Decimal("50.00"),
        priced_at=utcnow(),
    )

    assert crud_pricing_request.mark_priced(db, **kwargs) is False

    crud_pricing_request.claim(db, request_id=request_id, claimed_at=utcnow())
    assert crud_pricing_request.mark_priced(db, **kwargs) is True

    # order_id is written once only
    assert crud_pricing_request.mark_priced(db, **{**kwargs, "order_id": "ord_other"}) is False
    db.expire_all()
    rq = db.query(PricingRequest).filter(PricingRequest.id == request_id).one()
    assert rq.status == "priced"
    assert rq.order_id == "ord_abc"
    assert rq.total == Decimal("50.00")


def test_get_state_reads_current_row(db):
    request_id = _single_request(db)
    state = crud_pricing_request.get_state(db, request_id)

    assert state.status == "pending"
    assert state.customer_id == "cust_1"
    assert crud_pricing_request.get_state(db, "prq_missing") is None


def test_expire_stale_claims_respects_cutoff(db):
    request_id = _single_request(db)
    crud_pricing_request.claim(db, request_id=request_id, claimed_at=utcnow())
    db.query(PricingRequest).filter(PricingRequest.id == request_id).update(
        {"pricing_expires_at": utcnow() - timedelta(minutes=2)}, synchronize_session=False
    )
    db.commit()

    # Deadline passed 2 minutes ago, cutoff is 5 minutes ago
    cutoff = utcnow() - timedelta(minutes=5)
    assert crud_pricing_request.expire_stale_claims(db, deadline_before=cutoff) == 0

    assert crud_pricing_request.expire_stale_claims(db, deadline_before=utcnow()) == 1
    assert _status(db, request_id) == "expired"
