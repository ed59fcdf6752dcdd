from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from celtis_pos.engine import TransactionEngine
from celtis_pos.models import Cashier, Product, SaleStatus
from celtis_pos.session import SessionContext
from celtis_pos.state import EngineState
from celtis_pos.store import MemoryStore


@dataclass
class FakeClock:
    now: datetime

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@dataclass
class SequentialIds:
    prefix: str = "sale"
    counter: int = 0

    def __call__(self) -> str:
        self.counter += 1
        return f"{self.prefix}-{self.counter}"


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 7, 10, 30, tzinfo=timezone.utc))


@pytest.fixture()
def ids() -> SequentialIds:
    return SequentialIds()


@pytest.fixture()
def cashier() -> Cashier:
    return Cashier(id="cash-001", name="Ahmad Ali", pin="1234")


@pytest.fixture()
def products() -> dict[str, Product]:
    return {
        "water": Product(id="p-water", name="Mineral Water", sku="BEV-001", price=Decimal("2.000"), category="Beverages", stock=40),
        "bread": Product(id="p-bread", name="Arabic Bread", sku="BAK-001", price=Decimal("5.000"), category="Bakery", stock=12),
        "milk": Product(
            id="p-milk",
            name="Fresh Milk",
            sku="DAI-001",
            price=Decimal("1.250"),
            category="Dairy",
            stock=20,
            barcode="6251234567890",
        ),
    }


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def engine(store: MemoryStore, cashier: Cashier, clock: FakeClock, ids: SequentialIds) -> TransactionEngine:
    return TransactionEngine(
        store=store,
        session=SessionContext(cashier=cashier),
        clock=clock,
        id_factory=ids,
    )


def count_drafts(state: EngineState) -> int:
    candidates = [state.current_sale, *state.parked_sales, *state.sales]
    return sum(1 for sale in candidates if sale is not None and sale.status is SaleStatus.DRAFT)


@pytest.fixture()
def draft_count():
    return count_drafts
