# Overview: Tiered per-pound pricing for order lines.

from __future__ import annotations

from decimal import Decimal

from ..models import Product
from wholesale.money import quantize_money, to_decimal

TIER_10LB = Decimal("10")
TIER_5LB = Decimal("5")


def price_for(product: Product, quantity_lbs) -> Decimal:
    """
    Per-lb price for a line of `quantity_lbs`.

    qty >= 10 uses price_10lb, qty >= 5 uses price_5lb, else price_per_lb.
    A missing tier price falls through to the next lower tier.
    """
    qty = to_decimal(quantity_lbs)
    if qty >= TIER_10LB and product.price_10lb is not None:
        return to_decimal(product.price_10lb)
    if qty >= TIER_5LB and product.price_5lb is not None:
        return to_decimal(product.price_5lb)
    return to_decimal(product.price_per_lb)


def line_subtotal(unit_price: Decimal, quantity_lbs) -> Decimal:
    return quantize_money(to_decimal(unit_price) * to_decimal(quantity_lbs))
