# tests/services/test_seller_eligibility.py

from decimal import Decimal

import pytest

from broadcast_service.core.exceptions import (
    NoSellersProvided,
    TooManySellers,
    SellerNotFound,
    SellerInactive,
    SellerNotCapable,
)
from broadcast_service.services.seller_eligibility import validate_sellers
from tests.utils.factories import create_seller


def test_returns_configs_in_input_order(db):
    first = create_seller(db, settings={"pricing_timeout_hours": 6}, delivery_fee=Decimal("7.50"))
    second = create_seller(db, operation_mode="hybrid")

    configs = validate_sellers(db, [second.id, first.id])

    assert [c.seller_id for c in configs] == [second.id, first.id]
    assert configs[1].pricing_timeout_hours == 6
    assert configs[1].delivery_fee == Decimal("7.50")
    # Defaults fill in missing settings
    assert configs[0].pricing_timeout_hours == 24
    assert configs[0].auto_cancel_after_hours == 48
    assert configs[0].max_items_per_order == 50


def test_duplicate_ids_count_once(db):
    seller = create_seller(db)
    configs = validate_sellers(db, [seller.id, seller.id, f" {seller.id} "])
    assert len(configs) == 1


def test_empty_list_rejected(db):
    with pytest.raises(NoSellersProvided):
        validate_sellers(db, [])


def test_more_than_three_rejected(db):
    sellers = [create_seller(db) for _ in range(4)]
    with pytest.raises(TooManySellers):
        validate_sellers(db, [s.id for s in sellers])


def test_unknown_seller_rejects_whole_batch(db):
    seller = create_seller(db)
    with pytest.raises(SellerNotFound):
        validate_sellers(db, [seller.id, "slr_missing"])


@pytest.mark.parametrize("is_active,is_approved", [(False, True), (True, False)])
def test_inactive_or_unapproved_seller_rejected(db, is_active, is_approved):
    good = create_seller(db)
    bad = create_seller(db, is_active=is_active, is_approved=is_approved)
    with pytest.raises(SellerInactive):
        validate_sellers(db, [good.id, bad.id])


def test_catalog_only_seller_rejected(db):
    seller = create_seller(db, operation_mode="standard")
    with pytest.raises(SellerNotCapable):
        validate_sellers(db, [seller.id])
