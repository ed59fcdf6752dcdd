from __future__ import annotations

import json
import logging
from decimal import Decimal

import pytest

from celtis_pos.engine import TransactionEngine
from celtis_pos.exceptions import (
    EmptyCartError,
    InvalidTransitionError,
    NoActiveCashierError,
    NotFoundError,
    PaymentValidationError,
    RefundReasonRequiredError,
)
from celtis_pos.models import Cashier, PaymentDetail, SaleStatus
from celtis_pos.session import SessionContext
from celtis_pos.store import MemoryStore
from celtis_pos.telemetry import TelemetryLogger

CASH_15 = [PaymentDetail(method="cash", amount=Decimal("15"))]


def _golden_cart(engine: TransactionEngine, products) -> None:
    engine.add_to_cart(products["water"], 3)
    engine.add_to_cart(products["bread"])
    engine.apply_item_discount("p-bread", 10)


def test_golden_checkout(engine, products, store) -> None:
    _golden_cart(engine, products)

    totals = engine.cart_totals()
    assert totals.subtotal == Decimal("11.000")
    assert totals.discount == Decimal("0.500")
    assert totals.tax == Decimal("1.680")
    assert totals.total == Decimal("12.180")
    assert engine.change_due(CASH_15).change_due == Decimal("2.820")

    sale = engine.complete_sale(CASH_15)

    assert sale.status is SaleStatus.COMPLETED
    assert sale.receipt_number == "RCP-20260107-0001"
    assert sale.total == Decimal("12.180")
    assert engine.current_sale is None
    assert engine.history == (sale,)
    assert store.saves == 4


def test_receipt_numbers_increase(engine, products, clock) -> None:
    engine.add_to_cart(products["water"])
    first = engine.complete_sale(CASH_15)
    clock.advance(minutes=3)
    engine.add_to_cart(products["milk"])
    second = engine.complete_sale(CASH_15)
    clock.advance(days=1)
    engine.add_to_cart(products["bread"])
    third = engine.complete_sale(CASH_15)

    assert first.receipt_number == "RCP-20260107-0001"
    assert second.receipt_number == "RCP-20260107-0002"
    assert third.receipt_number == "RCP-20260108-0001"
    assert [sale.id for sale in engine.history] == [third.id, second.id, first.id]


def test_add_merges_lines(engine, products) -> None:
    engine.add_to_cart(products["water"], 2)
    engine.add_to_cart(products["water"], 3)

    assert len(engine.current_sale.items) == 1
    assert engine.cart_item_count() == 5


def test_every_change_is_saved_and_noops_are_not(engine, products, store) -> None:
    engine.add_to_cart(products["water"])
    assert store.saves == 1
    engine.update_quantity("p-water", 4)
    assert store.saves == 2
    engine.remove_from_cart("p-missing")
    engine.resume_sale("missing")
    engine.add_to_cart(products["water"], 0)
    assert store.saves == 2
    engine.set_customer_info("Lina Haddad")
    engine.set_sale_note("deliver after 5pm")
    assert store.saves == 4
    assert store.load() == engine.state


def test_park_and_resume_restore_cart(engine, products, draft_count) -> None:
    engine.add_to_cart(products["water"], 2)
    engine.set_customer_info("Lina Haddad")
    engine.set_sale_note("deliver after 5pm")
    before = engine.current_sale

    engine.park_sale()
    assert engine.current_sale is None
    assert [sale.id for sale in engine.parked_sales] == [before.id]

    engine.add_to_cart(products["bread"])
    engine.resume_sale(before.id)

    resumed = engine.current_sale
    assert resumed.id == before.id
    assert resumed.status is SaleStatus.DRAFT
    assert resumed.items == before.items
    assert resumed.customer_name == "Lina Haddad"
    assert resumed.note == "deliver after 5pm"
    assert resumed.total == before.total
    assert len(engine.parked_sales) == 1
    assert draft_count(engine.state) == 1


def test_void_empty_draft_keeps_history_unchanged(engine) -> None:
    engine.start_new_sale()
    engine.void_current_sale()

    assert engine.current_sale is None
    assert engine.history == ()


def test_void_filled_draft_is_recorded(engine, products) -> None:
    engine.add_to_cart(products["milk"])
    engine.void_current_sale()

    assert engine.sales_by_status("voided")[0].items[0].product.id == "p-milk"


def test_refund_non_completed_sale_is_rejected(engine, products, store) -> None:
    engine.add_to_cart(products["milk"])
    engine.void_current_sale()
    voided = engine.history[0]
    saves = store.saves

    with pytest.raises(InvalidTransitionError):
        engine.refund_sale(voided.id, "customer changed mind")

    assert engine.history == (voided,)
    assert store.saves == saves


def test_refund_completed_sale(engine, products, clock) -> None:
    _golden_cart(engine, products)
    sale = engine.complete_sale(CASH_15)
    clock.advance(hours=2)

    refunded = engine.refund_sale(sale.id, "Damaged packaging")

    assert refunded.status is SaleStatus.REFUNDED
    assert refunded.refund_reason == "Damaged packaging"
    assert refunded.refunded_at == clock.now
    assert refunded.total == sale.total
    assert refunded.receipt_number == sale.receipt_number
    assert engine.sales_by_status(SaleStatus.COMPLETED) == []


def test_refund_errors(engine, products) -> None:
    engine.add_to_cart(products["water"])
    sale = engine.complete_sale(CASH_15)

    with pytest.raises(NotFoundError):
        engine.refund_sale("missing", "reason")
    with pytest.raises(RefundReasonRequiredError):
        engine.refund_sale(sale.id, " ")


def test_no_active_cashier(store, clock, ids, products) -> None:
    engine = TransactionEngine(store=store, session=SessionContext(), clock=clock, id_factory=ids)

    with pytest.raises(NoActiveCashierError):
        engine.add_to_cart(products["water"])
    with pytest.raises(NoActiveCashierError):
        engine.start_new_sale()
    assert engine.current_sale is None
    assert store.saves == 0


def test_complete_after_sign_out_is_rejected(engine, products) -> None:
    engine.add_to_cart(products["water"])
    engine.sign_out()

    with pytest.raises(NoActiveCashierError):
        engine.complete_sale(CASH_15)
    assert engine.current_sale is not None


def test_complete_empty_cart(engine) -> None:
    with pytest.raises(EmptyCartError):
        engine.complete_sale(CASH_15)
    engine.start_new_sale()
    with pytest.raises(EmptyCartError):
        engine.complete_sale(CASH_15)


def test_complete_with_bad_payment_keeps_draft(engine, products) -> None:
    engine.add_to_cart(products["water"])

    with pytest.raises(PaymentValidationError):
        engine.complete_sale([{"method": "cash", "amount": "-1"}])
    assert engine.current_sale.status is SaleStatus.DRAFT
    assert engine.history == ()


def test_state_survives_restart(engine, products, store, clock, ids, cashier) -> None:
    _golden_cart(engine, products)
    engine.complete_sale(CASH_15)
    engine.add_to_cart(products["milk"], 2)
    engine.park_sale()
    engine.add_to_cart(products["water"])

    restarted = TransactionEngine(store=store, clock=clock, id_factory=ids)

    assert restarted.state == engine.state
    assert restarted.session.cashier == cashier
    assert restarted.history[0].receipt_number == "RCP-20260107-0001"
    assert restarted.history[0].total == Decimal("12.180")


def test_lookup_and_search(engine, products) -> None:
    engine.add_to_cart(products["water"])
    engine.set_customer_info("Lina Haddad")
    sale = engine.complete_sale(CASH_15)
    engine.add_to_cart(products["bread"])
    draft = engine.current_sale

    assert engine.get_sale(sale.id) == sale
    assert engine.get_sale(draft.id) == draft
    assert engine.get_sale("missing") is None
    assert engine.search_history("haddad") == [sale]
    assert engine.search_history("bread") == []


def test_availability(engine, products) -> None:
    idle = engine.availability()
    assert idle.can_edit_cart is True
    assert idle.can_complete is False
    assert idle.can_park is False
    engine.start_new_sale()
    assert engine.availability().can_complete is False
    engine.add_to_cart(products["water"])
    assert engine.availability().can_complete is True


def test_report_from_engine(engine, products) -> None:
    _golden_cart(engine, products)
    engine.complete_sale(CASH_15)

    report = engine.report()

    assert report.transactions == 1
    assert report.today_revenue == Decimal("12.180")
    assert report.payment_methods["cash"] == Decimal("15")


def test_actions_are_logged(engine, products, caplog) -> None:
    caplog.set_level(logging.INFO, logger="celtis_pos.engine")

    engine.add_to_cart(products["water"])
    engine.void_current_sale()
    with pytest.raises(EmptyCartError):
        engine.complete_sale(CASH_15)

    payloads = [json.loads(record.getMessage()) for record in caplog.records]
    assert payloads[0]["action"] == "add_to_cart"
    assert payloads[0]["outcome"] == "applied"
    assert payloads[0]["cashier_id"] == "cash-001"
    assert payloads[-1]["outcome"] == "rejected"
    assert payloads[-1]["error_code"] == "EMPTY_CART"
    assert caplog.records[-1].levelno == logging.WARNING


def test_telemetry_events_carry_no_customer_data(store, cashier, clock, ids, products, tmp_path) -> None:
    log_file = tmp_path / "telemetry.jsonl"
    engine = TransactionEngine(
        store=store,
        session=SessionContext(cashier=cashier),
        clock=clock,
        id_factory=ids,
        telemetry=TelemetryLogger(app_name="celtis-pos", enabled=True, log_file=log_file),
    )

    engine.add_to_cart(products["water"])
    engine.set_customer_info("Lina Haddad")
    with pytest.raises(PaymentValidationError):
        engine.complete_sale([])
    engine.complete_sale(CASH_15)
    engine.refund_sale("sale-1", "Damaged packaging")

    raw = log_file.read_text(encoding="utf-8")
    events = [json.loads(line) for line in raw.splitlines()]
    assert [event["action"] for event in events] == [
        "add_to_cart",
        "set_customer_info",
        "complete_sale",
        "complete_sale",
        "refund_sale",
    ]
    assert events[0]["category"] == "cart"
    assert events[0]["sale_id"] == "sale-1"
    assert events[0]["product_id"] == "p-water"
    assert events[0]["item_count"] == 1
    assert Decimal(events[0]["sale_total"]) == Decimal("2.32")
    assert events[2]["category"] == "error"
    assert events[2]["outcome"] == "rejected"
    assert events[2]["error_code"] == "PAYMENT_INVALID"
    assert events[3]["sale_id"] == "sale-1"
    assert events[3]["sale_status"] == "completed"
    assert events[4]["category"] == "ledger"
    assert events[4]["sale_status"] == "refunded"
    assert "Lina" not in raw
    assert "Damaged" not in raw
    assert "Ahmad" not in raw


def test_set_cashier_switches_owner_of_new_sales(engine, products) -> None:
    engine.set_cashier(Cashier(id="cash-002", name="Sara Nasser"))
    engine.add_to_cart(products["water"])

    assert engine.current_sale.cashier_id == "cash-002"
    assert engine.state.current_cashier.id == "cash-002"


def test_engine_defaults_to_memory_store() -> None:
    engine = TransactionEngine()
    assert isinstance(engine.store, MemoryStore)
    assert engine.current_sale is None


def test_totals_track_every_cart_change(engine, products) -> None:
    steps = [
        lambda: engine.add_to_cart(products["water"], 2),
        lambda: engine.add_to_cart(products["milk"], 3),
        lambda: engine.apply_item_discount("p-milk", 15),
        lambda: engine.update_quantity("p-water", 5),
        lambda: engine.add_to_cart(products["bread"]),
        lambda: engine.apply_item_discount("p-bread", "33.3"),
        lambda: engine.remove_from_cart("p-water"),
        lambda: engine.update_quantity("p-milk", 0),
    ]
    for step in steps:
        step()
        sale = engine.current_sale
        subtotal = sum((item.product.price * item.quantity for item in sale.items), Decimal("0"))
        discount = sum(
            (item.product.price * item.quantity * item.discount / 100 for item in sale.items),
            Decimal("0"),
        )
        assert sale.subtotal == subtotal
        assert sale.discount == discount
        assert sale.tax == (subtotal - discount) * Decimal("0.16")
        assert sale.total == subtotal - discount + sale.tax


def test_availability_without_cashier(store, clock, ids) -> None:
    engine = TransactionEngine(store=store, session=SessionContext(), clock=clock, id_factory=ids)

    assert engine.availability().can_edit_cart is False


def test_completion_and_refund_are_logged_against_their_sale(engine, products, caplog) -> None:
    caplog.set_level(logging.INFO, logger="celtis_pos.engine")
    engine.add_to_cart(products["water"])
    caplog.clear()

    sale = engine.complete_sale(CASH_15)
    engine.refund_sale(sale.id, "Damaged packaging")

    payloads = [json.loads(record.getMessage()) for record in caplog.records]
    assert [(row["action"], row["sale_id"]) for row in payloads] == [
        ("complete_sale", sale.id),
        ("refund_sale", sale.id),
    ]
    assert "Damaged" not in caplog.text
