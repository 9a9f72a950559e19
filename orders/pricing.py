"""
orders.pricing

Order total calculation. Pure: safe to call on every keystroke of the
price-preview form.

    compute_total(49000, [10000, 0], 5000, voucher)
    -> Totals(subtotal=64000, total=57600, discount=6400)

Bad numeric input (None, "", "abc", NaN, negatives) counts as 0. Rounding is
half-up to whole currency units and happens once, at the end.
"""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Iterable, NamedTuple, Optional

PERCENTAGE = "percentage"
FIXED = "fixed"


class Totals(NamedTuple):
    subtotal: int
    total: int
    discount: int


def to_amount(value: Any) -> Decimal:
    """Coerce anything into a finite, non-negative Decimal (0 when it can't be)."""
    if value is None or isinstance(value, bool):
        return Decimal(0)
    try:
        if isinstance(value, float) and not math.isfinite(value):
            return Decimal(0)
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return Decimal(0)
    if not amount.is_finite() or amount < 0:
        return Decimal(0)
    return amount


def _round(amount: Decimal) -> int:
    return int(amount.to_integral_value(rounding=ROUND_HALF_UP))


def apply_discount(subtotal: Decimal, discount_type: Optional[str], value: Any) -> Decimal:
    value = to_amount(value)
    if not value:
        return subtotal
    if discount_type == PERCENTAGE:
        return max(Decimal(0), subtotal * (1 - value / 100))
    if discount_type == FIXED:
        return max(Decimal(0), subtotal - value)
    return subtotal


def compute_total(
    template_price: Any,
    addon_prices: Optional[Iterable[Any]] = None,
    tip: Any = 0,
    voucher: Any = None,
) -> Totals:
    amounts = [to_amount(template_price)]
    amounts += [to_amount(price) for price in addon_prices or ()]
    amounts.append(to_amount(tip))

    with localcontext() as ctx:
        # keep every whole unit exact, however large the input
        ctx.prec = max(ctx.prec, max(a.adjusted() for a in amounts) + 30)
        subtotal = sum(amounts, Decimal(0))

        total = subtotal
        if voucher is not None:
            total = apply_discount(
                subtotal,
                getattr(voucher, "discount_type", None),
                getattr(voucher, "discount_value", None),
            )

        rounded_subtotal = _round(subtotal)
        rounded_total = min(_round(total), rounded_subtotal)
    return Totals(
        subtotal=rounded_subtotal,
        total=rounded_total,
        discount=rounded_subtotal - rounded_total,
    )
