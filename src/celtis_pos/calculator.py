"""Monetary recalculation for a sale's line items.

All arithmetic is exact ``Decimal`` arithmetic. Nothing is rounded here;
``quantize_currency`` exists for presentation and for comparisons at the
currency's precision (three minor-unit digits).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from .models import LineItem, Sale

TAX_RATE = Decimal("0.16")
CURRENCY_QUANTUM = Decimal("0.001")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


@dataclass(frozen=True)
class SaleTotals:
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal


EMPTY_TOTALS = SaleTotals(subtotal=ZERO, discount=ZERO, tax=ZERO, total=ZERO)


def quantize_currency(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CURRENCY_QUANTUM, rounding=ROUND_HALF_UP)


def clamp_discount(pct: Decimal | int | float | str) -> Decimal:
    value = Decimal(str(pct))
    return min(HUNDRED, max(ZERO, value))


def line_gross(item: LineItem) -> Decimal:
    return item.product.price * item.quantity


def line_discount(item: LineItem) -> Decimal:
    return line_gross(item) * item.discount / HUNDRED


def line_net(item: LineItem) -> Decimal:
    return line_gross(item) - line_discount(item)


def recalculate(items: Sequence[LineItem], tax_rate: Decimal = TAX_RATE) -> SaleTotals:
    """Compute subtotal, discount, tax and total from scratch.

    The result depends only on ``items`` and ``tax_rate``; calling it twice on
    the same input yields identical values.
    """
    subtotal = sum((line_gross(item) for item in items), ZERO)
    discount = sum((line_discount(item) for item in items), ZERO)
    taxable = subtotal - discount
    tax = taxable * tax_rate
    return SaleTotals(subtotal=subtotal, discount=discount, tax=tax, total=taxable + tax)


def apply_totals(sale: Sale, tax_rate: Decimal = TAX_RATE) -> Sale:
    totals = recalculate(sale.items, tax_rate)
    return sale.model_copy(
        update={
            "subtotal": totals.subtotal,
            "discount": totals.discount,
            "tax": totals.tax,
            "total": totals.total,
        }
    )


def item_count(items: Iterable[LineItem]) -> int:
    return sum(item.quantity for item in items)
