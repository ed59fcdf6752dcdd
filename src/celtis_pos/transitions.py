"""Pure state transitions for the register.

Every function takes an ``EngineState`` and returns a new one. When an
operation does not apply (no open sale, unknown product, unknown parked id)
the *same* state object is returned so callers can detect a no-op with
``is``. Lifecycle violations raise a ``PosError`` and leave the input state
untouched.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Mapping, Sequence

from . import ledger
from .calculator import TAX_RATE, apply_totals, clamp_discount
from .exceptions import EmptyCartError, NoActiveCashierError
from .models import Cashier, LineItem, PaymentDetail, Product, Sale, SaleStatus
from .payment_validation import require_recordable_payments
from .receipts import next_receipt
from .sale_state import ensure_editable, ensure_transition
from .state import EngineState


def set_cashier(state: EngineState, cashier: Cashier | None) -> EngineState:
    if state.current_cashier == cashier:
        return state
    return state.model_copy(update={"current_cashier": cashier})


def new_draft(cashier_id: str, *, sale_id: str, now: datetime) -> Sale:
    return Sale(id=sale_id, cashier_id=cashier_id, created_at=now)


def start_new_sale(
    state: EngineState,
    cashier_id: str | None = None,
    *,
    new_id: Callable[[], str],
    now: datetime,
) -> EngineState:
    owner = cashier_id or (state.current_cashier.id if state.current_cashier else None)
    if not owner:
        raise NoActiveCashierError()
    cleared = _set_aside_current(state)
    return cleared.model_copy(update={"current_sale": new_draft(owner, sale_id=new_id(), now=now)})


def add_to_cart(
    state: EngineState,
    product: Product,
    quantity: int = 1,
    *,
    new_id: Callable[[], str],
    now: datetime,
    tax_rate: Decimal = TAX_RATE,
) -> EngineState:
    if quantity < 1:
        return state
    sale = state.current_sale
    if sale is None:
        if state.current_cashier is None:
            raise NoActiveCashierError()
        sale = new_draft(state.current_cashier.id, sale_id=new_id(), now=now)
    ensure_editable(sale.status)

    existing = sale.find_item(product.id)
    if existing is not None:
        items = tuple(
            item.model_copy(update={"quantity": item.quantity + quantity}) if item.product.id == product.id else item
            for item in sale.items
        )
    else:
        snapshot = product.model_copy(deep=True)
        items = (*sale.items, LineItem(product=snapshot, quantity=quantity))
    return _replace_current(state, sale.model_copy(update={"items": items}), tax_rate)


def update_quantity(
    state: EngineState,
    product_id: str,
    quantity: int,
    *,
    tax_rate: Decimal = TAX_RATE,
) -> EngineState:
    if quantity <= 0:
        return remove_from_cart(state, product_id, tax_rate=tax_rate)
    return _edit_item(state, product_id, lambda item: item.model_copy(update={"quantity": quantity}), tax_rate)


def remove_from_cart(state: EngineState, product_id: str, *, tax_rate: Decimal = TAX_RATE) -> EngineState:
    sale = state.current_sale
    if sale is None or sale.find_item(product_id) is None:
        return state
    ensure_editable(sale.status)
    items = tuple(item for item in sale.items if item.product.id != product_id)
    return _replace_current(state, sale.model_copy(update={"items": items}), tax_rate)


def apply_item_discount(
    state: EngineState,
    product_id: str,
    pct: Decimal | int | float | str,
    *,
    tax_rate: Decimal = TAX_RATE,
) -> EngineState:
    discount = clamp_discount(pct)
    return _edit_item(state, product_id, lambda item: item.model_copy(update={"discount": discount}), tax_rate)


def clear_cart(state: EngineState, *, tax_rate: Decimal = TAX_RATE) -> EngineState:
    sale = state.current_sale
    if sale is None:
        return state
    ensure_editable(sale.status)
    return _replace_current(state, sale.model_copy(update={"items": ()}), tax_rate)


def set_customer_info(state: EngineState, name: str | None) -> EngineState:
    return _update_metadata(state, customer_name=name)


def set_sale_note(state: EngineState, note: str | None) -> EngineState:
    return _update_metadata(state, note=note)


def park_sale(state: EngineState) -> EngineState:
    sale = state.current_sale
    if sale is None or not sale.has_items:
        return state
    ensure_transition(sale.status, SaleStatus.PARKED)
    parked = sale.model_copy(update={"status": SaleStatus.PARKED})
    return state.model_copy(update={"current_sale": None, "parked_sales": (*state.parked_sales, parked)})


def resume_sale(state: EngineState, sale_id: str) -> EngineState:
    target = next((sale for sale in state.parked_sales if sale.id == sale_id), None)
    if target is None:
        return state
    ensure_transition(target.status, SaleStatus.DRAFT)
    cleared = _set_aside_current(state)
    remaining = tuple(sale for sale in cleared.parked_sales if sale.id != sale_id)
    return cleared.model_copy(
        update={
            "current_sale": target.model_copy(update={"status": SaleStatus.DRAFT}),
            "parked_sales": remaining,
        }
    )


def complete_sale(
    state: EngineState,
    payments: Sequence[PaymentDetail | Mapping[str, Any]],
    *,
    now: datetime,
) -> tuple[EngineState, Sale]:
    if state.current_cashier is None:
        raise NoActiveCashierError()
    sale = state.current_sale
    if sale is None or not sale.has_items:
        raise EmptyCartError()
    ensure_transition(sale.status, SaleStatus.COMPLETED)
    recorded = require_recordable_payments(payments)
    receipt_number, receipts = next_receipt(state.receipts, now)
    completed = sale.model_copy(
        update={
            "status": SaleStatus.COMPLETED,
            "payments": recorded,
            "completed_at": now,
            "receipt_number": receipt_number,
        }
    )
    updated = state.model_copy(
        update={
            "current_sale": None,
            "sales": ledger.append(state.sales, completed),
            "receipts": receipts,
        }
    )
    return updated, completed


def void_current_sale(state: EngineState, *, now: datetime) -> EngineState:
    sale = state.current_sale
    if sale is None:
        return state
    if not sale.has_items:
        return state.model_copy(update={"current_sale": None})
    ensure_transition(sale.status, SaleStatus.VOIDED)
    voided = sale.model_copy(update={"status": SaleStatus.VOIDED, "completed_at": now})
    return state.model_copy(update={"current_sale": None, "sales": ledger.append(state.sales, voided)})


def refund_sale(state: EngineState, sale_id: str, reason: str, *, now: datetime) -> EngineState:
    return state.model_copy(update={"sales": ledger.refund(state.sales, sale_id, reason, now=now)})


def _set_aside_current(state: EngineState) -> EngineState:
    """Park the open draft if it has items, drop it if it is empty."""
    sale = state.current_sale
    if sale is None:
        return state
    if sale.has_items:
        return park_sale(state)
    return state.model_copy(update={"current_sale": None})


def _replace_current(state: EngineState, sale: Sale, tax_rate: Decimal) -> EngineState:
    return state.model_copy(update={"current_sale": apply_totals(sale, tax_rate)})


def _edit_item(
    state: EngineState,
    product_id: str,
    change: Callable[[LineItem], LineItem],
    tax_rate: Decimal,
) -> EngineState:
    sale = state.current_sale
    if sale is None or sale.find_item(product_id) is None:
        return state
    ensure_editable(sale.status)
    items = tuple(change(item) if item.product.id == product_id else item for item in sale.items)
    return _replace_current(state, sale.model_copy(update={"items": items}), tax_rate)


def _update_metadata(state: EngineState, **changes: str | None) -> EngineState:
    sale = state.current_sale
    if sale is None:
        return state
    ensure_editable(sale.status)
    return state.model_copy(update={"current_sale": sale.model_copy(update=changes)})
