"""Register telemetry events.

An event describes one engine action and the sale it touched. Only ids,
counts, amounts and codes are recorded; customer names, notes, refund
reasons and cashier details never leave the register through this path.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from ..calculator import item_count
from ..models import Sale

TELEMETRY_CATEGORIES = frozenset({"cart", "lifecycle", "ledger", "error"})
OUTCOMES = frozenset({"applied", "noop", "rejected"})


@dataclass(frozen=True)
class RegisterEvent:
    category: str
    action: str
    outcome: str
    timestamp_utc: str
    sale_id: str | None = None
    sale_status: str | None = None
    item_count: int = 0
    sale_total: Decimal | None = None
    product_id: str | None = None
    error_code: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome != "rejected"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "category": self.category,
            "action": self.action,
            "outcome": self.outcome,
            "success": self.success,
            "timestamp_utc": self.timestamp_utc,
            "item_count": self.item_count,
        }
        optional = {
            "sale_id": self.sale_id,
            "sale_status": self.sale_status,
            "sale_total": str(self.sale_total) if self.sale_total is not None else None,
            "product_id": self.product_id,
            "error_code": self.error_code,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload


def build_event(
    *,
    action: str,
    outcome: str,
    sale: Sale | None = None,
    category: str = "cart",
    product_id: str | None = None,
    error_code: str | None = None,
    now: datetime | None = None,
) -> RegisterEvent:
    """Build the event for one engine action; any error code files it under ``error``."""
    if error_code:
        category = "error"
    if category not in TELEMETRY_CATEGORIES:
        raise ValueError(f"Unsupported telemetry category: {category}")
    if outcome not in OUTCOMES:
        raise ValueError(f"Unsupported telemetry outcome: {outcome}")
    stamp = (now or datetime.now(timezone.utc)).isoformat()
    return RegisterEvent(
        category=category,
        action=action,
        outcome=outcome,
        timestamp_utc=stamp,
        sale_id=sale.id if sale else None,
        sale_status=sale.status.value if sale else None,
        item_count=item_count(sale.items) if sale else 0,
        sale_total=sale.total if sale else None,
        product_id=product_id,
        error_code=error_code,
    )
