"""Landed-cost arithmetic for auction lots.

All amounts are ``Decimal``. Premium and tax are rounded half-up to the
cent individually, in that order, before the total is formed; rounding
the final total instead gives different cents on some inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def round2(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CostBreakdown:
    premium: Decimal
    tax: Decimal
    total_cost: Decimal
    cost_per_item: Decimal


def compute_costs(
    bid_amount: Decimal,
    premium_percent: Decimal,
    tax_percent: Decimal,
    shipping_cost: Decimal = Decimal("0"),
    quantity: int = 1,
) -> CostBreakdown:
    """Return premium, tax, total and per-item cost for one lot.

    Raises:
        ValueError: if *quantity* is not positive.
    """
    if quantity <= 0:
        raise ValueError(f"quantity must be positive, got {quantity}")

    premium = round2(bid_amount * premium_percent / HUNDRED)
    subtotal = bid_amount + premium
    tax = round2(subtotal * tax_percent / HUNDRED)
    total_cost = subtotal + tax + shipping_cost
    cost_per_item = round2(total_cost / Decimal(quantity))
    return CostBreakdown(
        premium=premium,
        tax=tax,
        total_cost=total_cost,
        cost_per_item=cost_per_item,
    )
