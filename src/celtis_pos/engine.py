"""Stateful register facade.

``TransactionEngine`` owns the current ``EngineState``. Each public operation
delegates to a pure function in :mod:`celtis_pos.transitions`, writes the
whole snapshot to the configured ``SaleStore`` when the state changed, and
records one structured log line plus a telemetry event.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Mapping, Sequence

from . import ledger, transitions
from .calculator import EMPTY_TOTALS, TAX_RATE, SaleTotals, item_count
from .config import PosConfig
from .exceptions import PosError
from .logger import get_logger, log_action
from .models import Cashier, PaymentDetail, Product, Sale, SaleStatus
from .payment_validation import PaymentTotals, compute_payment_totals, normalize_payments
from .reports import SalesReport, build_sales_report
from .sale_state import SaleActionAvailability, sale_action_availability
from .session import CashierDirectory, SessionContext
from .state import EngineState
from .store import JsonFileStore, MemoryStore, SaleStore
from .telemetry import TelemetryLogger, build_event

logger = get_logger(__name__)

Transition = Callable[[EngineState], EngineState]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_sale_id() -> str:
    return str(uuid.uuid4())


class TransactionEngine:
    def __init__(
        self,
        *,
        store: SaleStore | None = None,
        session: SessionContext | None = None,
        tax_rate: Decimal = TAX_RATE,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = new_sale_id,
        telemetry: TelemetryLogger | None = None,
        directory: CashierDirectory | None = None,
    ) -> None:
        self.store: SaleStore = store if store is not None else MemoryStore()
        self.session = session or SessionContext()
        self.tax_rate = tax_rate
        self.clock = clock
        self.id_factory = id_factory
        self.telemetry = telemetry or TelemetryLogger(app_name="celtis-pos", enabled=False)
        self.state = self.store.load() or EngineState()
        if self.session.cashier is None and self.state.current_cashier is not None:
            self.session.sign_in(self.state.current_cashier)
        self.directory = directory if directory is not None else CashierDirectory()
        if self.session.cashier is not None:
            self.directory.register(self.session.cashier)

    @classmethod
    def from_config(cls, config: PosConfig, **kwargs: Any) -> "TransactionEngine":
        kwargs.setdefault("store", JsonFileStore(path=config.state_file, app_name=config.app_name))
        kwargs.setdefault("telemetry", TelemetryLogger.from_config(config))
        if config.cashiers_file is not None:
            kwargs.setdefault("directory", CashierDirectory.from_file(config.cashiers_file))
        return cls(tax_rate=config.tax_rate, **kwargs)

    # -- session ---------------------------------------------------------

    def set_cashier(self, cashier: Cashier) -> None:
        self.session.sign_in(cashier)
        self.directory.register(cashier)
        self._apply("set_cashier", lambda state: state, category="lifecycle")

    def sign_out(self) -> None:
        self.session.sign_out()
        self._apply("sign_out", lambda state: state, category="lifecycle")

    # -- cart ------------------------------------------------------------

    def start_new_sale(self, cashier_id: str | None = None) -> Sale:
        self._apply(
            "start_new_sale",
            lambda state: transitions.start_new_sale(state, cashier_id, new_id=self.id_factory, now=self.clock()),
            category="lifecycle",
        )
        return self.state.current_sale

    def add_to_cart(self, product: Product, quantity: int = 1) -> None:
        self._apply(
            "add_to_cart",
            lambda state: transitions.add_to_cart(
                state, product, quantity, new_id=self.id_factory, now=self.clock(), tax_rate=self.tax_rate
            ),
            product_id=product.id,
        )

    def update_quantity(self, product_id: str, quantity: int) -> None:
        self._apply(
            "update_quantity",
            lambda state: transitions.update_quantity(state, product_id, quantity, tax_rate=self.tax_rate),
            product_id=product_id,
        )

    def remove_from_cart(self, product_id: str) -> None:
        self._apply(
            "remove_from_cart",
            lambda state: transitions.remove_from_cart(state, product_id, tax_rate=self.tax_rate),
            product_id=product_id,
        )

    def apply_item_discount(self, product_id: str, pct: Decimal | int | float | str) -> None:
        self._apply(
            "apply_item_discount",
            lambda state: transitions.apply_item_discount(state, product_id, pct, tax_rate=self.tax_rate),
            product_id=product_id,
        )

    def clear_cart(self) -> None:
        self._apply("clear_cart", lambda state: transitions.clear_cart(state, tax_rate=self.tax_rate))

    def set_customer_info(self, name: str | None) -> None:
        self._apply("set_customer_info", lambda state: transitions.set_customer_info(state, name))

    def set_sale_note(self, note: str | None) -> None:
        self._apply("set_sale_note", lambda state: transitions.set_sale_note(state, note))

    # -- lifecycle -------------------------------------------------------

    def park_sale(self) -> None:
        self._apply("park_sale", transitions.park_sale, category="lifecycle")

    def resume_sale(self, sale_id: str) -> None:
        self._apply("resume_sale", lambda state: transitions.resume_sale(state, sale_id), category="lifecycle")

    def complete_sale(self, payments: Sequence[PaymentDetail | Mapping[str, Any]]) -> Sale:
        def _complete(state: EngineState) -> EngineState:
            updated, _ = transitions.complete_sale(state, payments, now=self.clock())
            return updated

        self._apply("complete_sale", _complete, category="lifecycle", track=self._open_sale_id())
        return self.state.sales[0]

    def void_current_sale(self) -> None:
        self._apply(
            "void_current_sale",
            lambda state: transitions.void_current_sale(state, now=self.clock()),
            category="lifecycle",
            track=self._open_sale_id(),
        )

    def refund_sale(self, sale_id: str, reason: str) -> Sale | None:
        self._apply(
            "refund_sale",
            lambda state: transitions.refund_sale(state, sale_id, reason, now=self.clock()),
            category="ledger",
            track=sale_id,
        )
        return ledger.find_by_id(self.state.sales, sale_id)

    # -- queries ---------------------------------------------------------

    @property
    def current_sale(self) -> Sale | None:
        return self.state.current_sale

    @property
    def parked_sales(self) -> tuple[Sale, ...]:
        return self.state.parked_sales

    @property
    def history(self) -> tuple[Sale, ...]:
        return self.state.sales

    def get_sale(self, sale_id: str) -> Sale | None:
        return ledger.lookup_sale(self.state, sale_id)

    def sales_by_status(self, status: SaleStatus | str) -> list[Sale]:
        return ledger.find_by_status(self.state.sales, status)

    def search_history(self, query: str | None = None, status: SaleStatus | str | None = None) -> list[Sale]:
        return ledger.search(self.state.sales, query, status)

    def cart_totals(self) -> SaleTotals:
        sale = self.state.current_sale
        if sale is None:
            return EMPTY_TOTALS
        return SaleTotals(subtotal=sale.subtotal, discount=sale.discount, tax=sale.tax, total=sale.total)

    def cart_item_count(self) -> int:
        sale = self.state.current_sale
        return item_count(sale.items) if sale else 0

    def availability(self) -> SaleActionAvailability:
        sale = self.state.current_sale
        if sale is None:
            # add_to_cart opens a draft on demand
            signed_in = self.session.cashier is not None
            return SaleActionAvailability(signed_in, False, False, False, False, False)
        return sale_action_availability(sale.status, item_count=len(sale.items))

    def cashier_name(self, cashier_id: str) -> str:
        return self.directory.display_name(cashier_id)

    def change_due(self, payments: Sequence[PaymentDetail | Mapping[str, Any]]) -> PaymentTotals:
        normalized, _ = normalize_payments(payments)
        return compute_payment_totals(self.cart_totals().total, normalized)

    def report(self, now: datetime | None = None) -> SalesReport:
        return build_sales_report(self.state.sales, now=now or self.clock())

    # -- internals -------------------------------------------------------

    def _open_sale_id(self) -> str | None:
        return self.state.current_sale.id if self.state.current_sale else None

    def _apply(
        self,
        action: str,
        change: Transition,
        *,
        category: str = "cart",
        track: str | None = None,
        product_id: str | None = None,
    ) -> None:
        """Run one transition, save if it changed anything, then log it.

        ``track`` names the sale the action is about when it may leave the
        current-sale slot (completion, void, refund); otherwise the open draft
        is reported.
        """
        before = self.state
        synced = transitions.set_cashier(before, self.session.cashier)
        try:
            after = change(synced)
        except PosError as exc:
            subject = _subject(before, track)
            self._record(action, category, "rejected", subject, product_id=product_id, error_code=exc.code)
            raise
        if after is not before:
            self.store.save(after)
            self.state = after
        outcome = "noop" if after is before else "applied"
        self._record(action, category, outcome, _subject(after, track), product_id=product_id)

    def _record(
        self,
        action: str,
        category: str,
        outcome: str,
        sale: Sale | None,
        *,
        product_id: str | None = None,
        error_code: str | None = None,
    ) -> None:
        extra = {"product_id": product_id} if product_id else {}
        log_action(
            logger,
            action=action,
            sale_id=sale.id if sale else None,
            cashier_id=self.session.cashier_id,
            outcome=outcome,
            error_code=error_code,
            **extra,
        )
        event = build_event(
            action=action,
            outcome=outcome,
            sale=sale,
            category=category,
            product_id=product_id,
            error_code=error_code,
            now=self.clock(),
        )
        self.telemetry.emit(event)


def _subject(state: EngineState, track: str | None) -> Sale | None:
    if track is None:
        return state.current_sale
    return ledger.lookup_sale(state, track)
