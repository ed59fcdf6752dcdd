from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ZERO = Decimal("0")


class SaleStatus(str, Enum):
    DRAFT = "draft"
    PARKED = "parked"
    COMPLETED = "completed"
    VOIDED = "voided"
    REFUNDED = "refunded"


FINAL_STATUSES = frozenset({SaleStatus.COMPLETED, SaleStatus.VOIDED, SaleStatus.REFUNDED})


class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    sku: str
    price: Decimal = Field(ge=0)
    category: str
    stock: int = 0
    barcode: str | None = None


class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    product: Product
    quantity: int = Field(default=1, ge=1)
    discount: Decimal = Field(default=ZERO, ge=0, le=100)


class PaymentDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: Literal["cash", "card"]
    amount: Decimal


class Cashier(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    pin: str = Field(default="", repr=False)


class Sale(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    items: tuple[LineItem, ...] = ()
    subtotal: Decimal = ZERO
    discount: Decimal = ZERO
    tax: Decimal = ZERO
    total: Decimal = ZERO
    status: SaleStatus = SaleStatus.DRAFT
    payments: tuple[PaymentDetail, ...] = ()
    cashier_id: str
    customer_name: str | None = None
    note: str | None = None
    created_at: datetime
    completed_at: datetime | None = None
    refunded_at: datetime | None = None
    refund_reason: str | None = None
    receipt_number: str | None = None

    @property
    def has_items(self) -> bool:
        return bool(self.items)

    def find_item(self, product_id: str) -> LineItem | None:
        for item in self.items:
            if item.product.id == product_id:
                return item
        return None
