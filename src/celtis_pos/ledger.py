"""History ledger of finalized sales.

The ledger is an immutable tuple ordered most-recent-first. Functions here
return new tuples; the only in-place style change they model is the
completed -> refunded transition, which keeps the entry at its position.
"""

from __future__ import annotations

from datetime import datetime

from .exceptions import InvalidTransitionError, NotFoundError, RefundReasonRequiredError
from .models import FINAL_STATUSES, Sale, SaleStatus
from .sale_state import ensure_transition
from .state import EngineState


def append(entries: tuple[Sale, ...], sale: Sale) -> tuple[Sale, ...]:
    if sale.status not in FINAL_STATUSES:
        raise InvalidTransitionError(
            message=f"only finalized sales enter the ledger, got {sale.status.value}",
            details={"sale_id": sale.id, "status": sale.status.value},
        )
    return (sale, *entries)


def refund(entries: tuple[Sale, ...], sale_id: str, reason: str, *, now: datetime) -> tuple[Sale, ...]:
    index = _index_of(entries, sale_id)
    if index is None:
        raise NotFoundError(message=f"sale {sale_id} is not in the sales history", details={"sale_id": sale_id})
    sale = entries[index]
    if sale.status is not SaleStatus.COMPLETED:
        raise InvalidTransitionError(
            message=f"only completed sales can be refunded, sale is {sale.status.value}",
            details={"sale_id": sale_id, "status": sale.status.value},
        )
    cleaned = (reason or "").strip()
    if not cleaned:
        raise RefundReasonRequiredError(details={"sale_id": sale_id})
    ensure_transition(sale.status, SaleStatus.REFUNDED)
    refunded = sale.model_copy(
        update={"status": SaleStatus.REFUNDED, "refunded_at": now, "refund_reason": cleaned}
    )
    return entries[:index] + (refunded,) + entries[index + 1 :]


def find_by_status(entries: tuple[Sale, ...], status: SaleStatus | str) -> list[Sale]:
    value = SaleStatus(status)
    return [sale for sale in entries if sale.status is value]


def find_by_id(entries: tuple[Sale, ...], sale_id: str) -> Sale | None:
    index = _index_of(entries, sale_id)
    return entries[index] if index is not None else None


def lookup_sale(state: EngineState, sale_id: str) -> Sale | None:
    """Find a sale by id across the open draft, parked pool and ledger."""
    if state.current_sale is not None and state.current_sale.id == sale_id:
        return state.current_sale
    for sale in state.parked_sales:
        if sale.id == sale_id:
            return sale
    return find_by_id(state.sales, sale_id)


def search(entries: tuple[Sale, ...], query: str | None = None, status: SaleStatus | str | None = None) -> list[Sale]:
    result = list(entries) if status is None else find_by_status(entries, status)
    needle = (query or "").strip().lower()
    if not needle:
        return result
    return [sale for sale in result if _matches(sale, needle)]


def _matches(sale: Sale, needle: str) -> bool:
    if sale.receipt_number and needle in sale.receipt_number.lower():
        return True
    if sale.customer_name and needle in sale.customer_name.lower():
        return True
    return any(needle in item.product.name.lower() for item in sale.items)


def _index_of(entries: tuple[Sale, ...], sale_id: str) -> int | None:
    for index, sale in enumerate(entries):
        if sale.id == sale_id:
            return index
    return None
