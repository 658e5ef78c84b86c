# broadcast_service/services/quote_totals.py
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from broadcast_service.schemas.pricing import (
    Availability,
    PricingLineItemIn,
    quantize_money,
)


@dataclass(frozen=True)
class QuoteTotals:
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal
    items_count: int


def compute_totals(items: Iterable[PricingLineItemIn], delivery_fee: Decimal) -> QuoteTotals:
    """
    Sum a quote. Unavailable lines add nothing and are not counted;
    substituted lines add their substitute total.
    """
    subtotal = Decimal("0.00")
    items_count = 0
    for item in items:
        if item.availability == Availability.UNAVAILABLE:
            continue
        subtotal += item.contributed_total
        items_count += 1

    subtotal = quantize_money(subtotal)
    fee = quantize_money(delivery_fee)
    return QuoteTotals(
        subtotal=subtotal,
        delivery_fee=fee,
        total=quantize_money(subtotal + fee),
        items_count=items_count,
    )
