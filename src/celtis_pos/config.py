from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_TELEMETRY_FILE = Path("artifacts") / "telemetry" / "celtis-pos.jsonl"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class PosConfig:
    env_name: str = "dev"
    tax_rate: Decimal = Decimal("0.16")
    state_file: Path | None = None
    app_name: str = "celtis-pos"
    telemetry_enabled: bool = False
    telemetry_file: Path = DEFAULT_TELEMETRY_FILE
    log_level: str = "INFO"
    cashiers_file: Path | None = None

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()


def _coerce_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_decimal(name: str, default: str) -> Decimal:
    raw = os.getenv(name, default)
    try:
        return Decimal(raw.strip())
    except (AttributeError, InvalidOperation) as exc:
        raise ConfigError(f"Invalid {name}: expected a decimal number, got {raw!r}") from exc


def _validate(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


def load_config(env_file: str | None = None) -> PosConfig:
    """Load register config from environment with optional .env override."""
    load_dotenv(env_file)

    env_name = (os.getenv("CELTIS_POS_ENV") or "dev").strip()

    tax_rate = _read_decimal("CELTIS_POS_TAX_RATE", "0.16")
    _validate(
        tax_rate.is_finite() and Decimal("0") <= tax_rate < Decimal("1"),
        f"Invalid CELTIS_POS_TAX_RATE: expected 0 <= rate < 1, got {tax_rate}",
    )

    state_file_raw = (os.getenv("CELTIS_POS_STATE_FILE") or "").strip()
    state_file = Path(state_file_raw).expanduser() if state_file_raw else None

    app_name = (os.getenv("CELTIS_POS_APP_NAME") or "celtis-pos").strip()
    _validate(bool(app_name), "Invalid CELTIS_POS_APP_NAME: must not be blank")

    telemetry_enabled = _coerce_bool(os.getenv("CELTIS_POS_TELEMETRY_ENABLED"), False)
    telemetry_file_raw = (os.getenv("CELTIS_POS_TELEMETRY_FILE") or "").strip()
    telemetry_file = Path(telemetry_file_raw) if telemetry_file_raw else DEFAULT_TELEMETRY_FILE

    cashiers_file_raw = (os.getenv("CELTIS_POS_CASHIERS_FILE") or "").strip()
    cashiers_file = Path(cashiers_file_raw).expanduser() if cashiers_file_raw else None

    log_level = (os.getenv("CELTIS_POS_LOG_LEVEL") or "INFO").strip().upper()
    _validate(
        isinstance(logging.getLevelName(log_level), int),
        f"Invalid CELTIS_POS_LOG_LEVEL: unknown level {log_level!r}",
    )

    return PosConfig(
        env_name=env_name,
        tax_rate=tax_rate,
        state_file=state_file,
        app_name=app_name,
        telemetry_enabled=telemetry_enabled,
        telemetry_file=telemetry_file,
        log_level=log_level,
        cashiers_file=cashiers_file,
    )
