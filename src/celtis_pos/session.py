from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from .config import ConfigError
from .models import Cashier


@dataclass
class SessionContext:
    """Who is at the register. Filled in by the login collaborator."""

    cashier: Cashier | None = None

    @property
    def cashier_id(self) -> str | None:
        return self.cashier.id if self.cashier else None

    def sign_in(self, cashier: Cashier) -> None:
        self.cashier = cashier

    def sign_out(self) -> None:
        self.cashier = None


@dataclass
class CashierDirectory:
    cashiers: dict[str, Cashier] = field(default_factory=dict)

    @classmethod
    def from_records(cls, records: Iterable[Cashier]) -> "CashierDirectory":
        return cls(cashiers={cashier.id: cashier for cashier in records})

    @classmethod
    def from_file(cls, path: str | Path) -> "CashierDirectory":
        """Load a JSON list of cashier records, e.g. the store's roster export."""
        try:
            records = json.loads(Path(path).read_text(encoding="utf-8"))
            return cls.from_records(Cashier.model_validate(record) for record in records)
        except (OSError, ValueError, TypeError, ValidationError) as exc:
            raise ConfigError(f"Invalid cashier roster {path}: {exc}") from exc

    def register(self, cashier: Cashier) -> None:
        self.cashiers[cashier.id] = cashier

    def get(self, cashier_id: str) -> Cashier | None:
        return self.cashiers.get(cashier_id)

    def display_name(self, cashier_id: str) -> str:
        cashier = self.get(cashier_id)
        return cashier.name if cashier else cashier_id
