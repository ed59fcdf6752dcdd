from __future__ import annotations

import json
from pathlib import Path

from ..config import DEFAULT_TELEMETRY_FILE, PosConfig
from .events import RegisterEvent


class TelemetryLogger:
    """Appends register events as JSON lines; does nothing unless enabled."""

    def __init__(self, *, app_name: str, enabled: bool = False, log_file: str | Path | None = None) -> None:
        self.app_name = app_name
        self.enabled = enabled
        self.log_file = Path(log_file) if log_file else DEFAULT_TELEMETRY_FILE

    @classmethod
    def from_config(cls, config: PosConfig) -> "TelemetryLogger":
        return cls(app_name=config.app_name, enabled=config.telemetry_enabled, log_file=config.telemetry_file)

    def emit(self, event: RegisterEvent) -> bool:
        if not self.enabled:
            return False
        payload = {"app_name": self.app_name, **event.to_dict()}
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        with self.log_file.open("a", encoding="utf-8") as fp:
            fp.write(json.dumps(payload, sort_keys=True) + "\n")
        return True
