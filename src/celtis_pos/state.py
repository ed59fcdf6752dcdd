from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict

from .models import Cashier, Sale
from .receipts import ReceiptSequence

STATE_VERSION = 1


class EngineState(BaseModel):
    """Everything the register persists between operations."""

    model_config = ConfigDict(frozen=True)

    version: int = STATE_VERSION
    current_cashier: Cashier | None = None
    current_sale: Sale | None = None
    parked_sales: tuple[Sale, ...] = ()
    sales: tuple[Sale, ...] = ()
    receipts: ReceiptSequence = ReceiptSequence()

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "EngineState":
        return cls.model_validate(dict(document))
