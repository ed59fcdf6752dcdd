from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Iterable

from .calculator import line_net
from .models import Sale, SaleStatus

ZERO = Decimal("0")


@dataclass(frozen=True)
class ProductPerformance:
    product_id: str
    name: str
    quantity: int
    revenue: Decimal


@dataclass(frozen=True)
class SalesReport:
    total_revenue: Decimal
    transactions: int
    average_transaction: Decimal
    today_revenue: Decimal
    today_transactions: int
    week_revenue: Decimal
    week_transactions: int
    items_sold: int
    refund_count: int
    refund_amount: Decimal
    top_products: list[ProductPerformance] = field(default_factory=list)
    category_revenue: list[tuple[str, Decimal]] = field(default_factory=list)
    payment_methods: dict[str, Decimal] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total_revenue": str(self.total_revenue),
            "transactions": self.transactions,
            "average_transaction": str(self.average_transaction),
            "today_revenue": str(self.today_revenue),
            "today_transactions": self.today_transactions,
            "week_revenue": str(self.week_revenue),
            "week_transactions": self.week_transactions,
            "items_sold": self.items_sold,
            "refund_count": self.refund_count,
            "refund_amount": str(self.refund_amount),
            "top_products": [
                {
                    "product_id": row.product_id,
                    "name": row.name,
                    "quantity": row.quantity,
                    "revenue": str(row.revenue),
                }
                for row in self.top_products
            ],
            "category_revenue": [{"category": name, "revenue": str(value)} for name, value in self.category_revenue],
            "payment_methods": {method: str(amount) for method, amount in self.payment_methods.items()},
        }


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def week_start(now: datetime) -> datetime:
    """Midnight UTC of the Sunday that opens ``now``'s week."""
    current = _utc(now)
    days_since_sunday = (current.weekday() + 1) % 7
    start_day = current.date() - timedelta(days=days_since_sunday)
    return datetime.combine(start_day, time.min, tzinfo=timezone.utc)


def _total(sales: Iterable[Sale]) -> Decimal:
    return sum((sale.total for sale in sales), ZERO)


def build_sales_report(entries: Iterable[Sale], *, now: datetime, top_n: int = 5) -> SalesReport:
    sales = list(entries)
    completed = [sale for sale in sales if sale.status is SaleStatus.COMPLETED and sale.completed_at]
    refunded = [sale for sale in sales if sale.status is SaleStatus.REFUNDED]

    today = _utc(now).date()
    since = week_start(now)
    today_sales = [sale for sale in completed if _utc(sale.completed_at).date() == today]
    week_sales = [sale for sale in completed if _utc(sale.completed_at) >= since]

    products: dict[str, ProductPerformance] = {}
    categories: dict[str, Decimal] = {}
    payment_methods: dict[str, Decimal] = {"cash": ZERO, "card": ZERO}
    for sale in completed:
        for item in sale.items:
            net = line_net(item)
            current = products.get(item.product.id)
            products[item.product.id] = ProductPerformance(
                product_id=item.product.id,
                name=current.name if current else item.product.name,
                quantity=(current.quantity if current else 0) + item.quantity,
                revenue=(current.revenue if current else ZERO) + net,
            )
            categories[item.product.category] = categories.get(item.product.category, ZERO) + net
        for payment in sale.payments:
            payment_methods[payment.method] = payment_methods.get(payment.method, ZERO) + payment.amount

    total_revenue = _total(completed)
    top_products = sorted(products.values(), key=lambda row: row.revenue, reverse=True)[:top_n]
    return SalesReport(
        total_revenue=total_revenue,
        transactions=len(completed),
        average_transaction=total_revenue / len(completed) if completed else ZERO,
        today_revenue=_total(today_sales),
        today_transactions=len(today_sales),
        week_revenue=_total(week_sales),
        week_transactions=len(week_sales),
        items_sold=sum(item.quantity for sale in completed for item in sale.items),
        refund_count=len(refunded),
        refund_amount=_total(refunded),
        top_products=top_products,
        category_revenue=sorted(categories.items(), key=lambda pair: pair[1], reverse=True),
        payment_methods=payment_methods,
    )
