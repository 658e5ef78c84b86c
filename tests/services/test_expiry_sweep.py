# tests/services/test_expiry_sweep.py

from datetime import timedelta
from unittest.mock import patch

from broadcast_service.background_tasks.broadcast_tasks import (
    expire_overdue_broadcasts,
    run_expiry_sweep,
)
from broadcast_service.crud import crud_pricing_request
from broadcast_service.models.broadcast import Broadcast
from broadcast_service.models.pricing_request import PricingRequest
from broadcast_service.services.broadcast_orchestrator import BroadcastOrchestrator
from broadcast_service.services.pricing_engine import PricingEngine
from broadcast_service.utils.time import utcnow
from tests.utils.factories import create_seller, text_broadcast, two_item_quote


def _statuses(db, broadcast_id):
    db.expire_all()
    return sorted(
        rq.status
        for rq in db.query(PricingRequest).filter(PricingRequest.broadcast_id == broadcast_id)
    )


def test_sweep_expires_overdue_broadcast_and_requests(db):
    sellers = [create_seller(db), create_seller(db)]
    long_ago = utcnow() - timedelta(hours=100)
    broadcast, _ = BroadcastOrchestrator(db, clock=lambda: long_ago).create(
        customer_id="cust_1", data=text_broadcast([s.id for s in sellers])
    )
    broadcast_id = broadcast.id

    counts = run_expiry_sweep(db)

    assert counts == {
        "expired_pending_requests": 2,
        "expired_stale_claims": 0,
        "expired_broadcasts": 1,
    }
    assert _statuses(db, broadcast_id) == ["expired", "expired"]
    assert db.query(Broadcast).filter(Broadcast.id == broadcast_id).one().status == "expired"


def test_sweep_keeps_broadcast_with_a_priced_quote(db):
    sellers = [create_seller(db), create_seller(db)]
    broadcast, requests = BroadcastOrchestrator(db).create(
        customer_id="cust_1", data=text_broadcast([s.id for s in sellers])
    )
    broadcast_id = broadcast.id
    PricingEngine(db).submit(
        request_id=requests[0].id, seller_id=sellers[0].id, data=two_item_quote()
    )

    later = utcnow() + timedelta(hours=100)
    counts = run_expiry_sweep(db, now=later)

    assert counts["expired_pending_requests"] == 1
    assert counts["expired_broadcasts"] == 0
    assert _statuses(db, broadcast_id) == ["expired", "priced"]
    assert db.query(Broadcast).filter(Broadcast.id == broadcast_id).one().status == "active"


def test_sweep_expires_claims_only_after_grace(db):
    seller = create_seller(db, settings={"pricing_timeout_hours": 1, "auto_cancel_after_hours": 10})
    _, requests = BroadcastOrchestrator(db).create(
        customer_id="cust_1", data=text_broadcast([seller.id])
    )
    request_id = requests[0].id
    crud_pricing_request.claim(db, request_id=request_id, claimed_at=utcnow())

    just_after_deadline = utcnow() + timedelta(hours=1, minutes=2)
    assert run_expiry_sweep(db, now=just_after_deadline)["expired_stale_claims"] == 0

    well_after_deadline = utcnow() + timedelta(hours=1, minutes=10)
    assert run_expiry_sweep(db, now=well_after_deadline)["expired_stale_claims"] == 1


def test_scheduled_job_uses_its_own_session(session_factory):
    with patch(
        "broadcast_service.background_tasks.broadcast_tasks.SessionLocal", session_factory
    ):
        counts = expire_overdue_broadcasts()

    assert counts == {
        "expired_pending_requests": 0,
        "expired_stale_claims": 0,
        "expired_broadcasts": 0,
    }
