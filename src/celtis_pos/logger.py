from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format="%(message)s")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_json(logger: logging.Logger, payload: dict) -> None:
    logger.info(json.dumps(payload, ensure_ascii=False, default=str))


def log_action(
    logger: logging.Logger,
    *,
    action: str,
    sale_id: str | None,
    cashier_id: str | None,
    outcome: str,
    **extra: Any,
) -> None:
    payload = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "module": "register",
        "action": action,
        "sale_id": sale_id,
        "cashier_id": cashier_id,
        "outcome": outcome,
    }
    payload.update(extra)
    if outcome == "rejected":
        logger.warning(json.dumps(payload, ensure_ascii=False, default=str))
    else:
        log_json(logger, payload)
