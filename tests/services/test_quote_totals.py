# tests/services/test_quote_totals.py

from decimal import Decimal

import pytest
from pydantic import ValidationError

from broadcast_service.schemas.pricing import PricingLineItemIn
from broadcast_service.services.quote_totals import compute_totals


def _item(**kwargs):
    base = {"name": "Item", "unit_kind": "piece", "unit_price": Decimal("10.00"), "quantity": Decimal("1")}
    base.update(kwargs)
    return PricingLineItemIn(**base)


def test_unavailable_lines_are_excluded():
    totals = compute_totals(
        [
            _item(unit_price=Decimal("12.50"), quantity=Decimal("2")),
            _item(availability="unavailable", unit_price=Decimal("99.00")),
        ],
        Decimal("5"),
    )

    assert totals.subtotal == Decimal("25.00")
    assert totals.delivery_fee == Decimal("5.00")
    assert totals.total == Decimal("30.00")
    assert totals.items_count == 1


def test_substituted_lines_use_substitute_total():
    totals = compute_totals(
        [
            _item(
                availability="substituted",
                unit_price=Decimal("20.00"),
                substitute_name="Jasmine Rice",
                substitute_total=Decimal("18.00"),
            ),
            _item(
                availability="substituted",
                substitute_unit_price=Decimal("2.25"),
                substitute_quantity=Decimal("4"),
            ),
        ],
        Decimal("0"),
    )

    assert totals.subtotal == Decimal("27.00")
    assert totals.items_count == 2


def test_substituted_line_needs_a_substitute_price():
    with pytest.raises(ValidationError):
        _item(availability="substituted", substitute_name="Anything")


def test_money_rounds_half_up():
    totals = compute_totals(
        [_item(unit_price=Decimal("0.335"), quantity=Decimal("3"))], Decimal("0.005")
    )
    assert totals.subtotal == Decimal("1.01")
    assert totals.total == Decimal("1.02")
