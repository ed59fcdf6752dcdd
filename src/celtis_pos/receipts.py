from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict

RECEIPT_PREFIX = "RCP"


class ReceiptSequence(BaseModel):
    """Per-terminal receipt counter; restarts every UTC calendar day."""

    model_config = ConfigDict(frozen=True)

    business_date: str | None = None
    last_sequence: int = 0


def business_date(now: datetime) -> str:
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y%m%d")


def format_receipt_number(date_key: str, sequence: int) -> str:
    return f"{RECEIPT_PREFIX}-{date_key}-{sequence:04d}"


def next_receipt(sequence: ReceiptSequence, now: datetime) -> tuple[str, ReceiptSequence]:
    date_key = business_date(now)
    counter = sequence.last_sequence + 1 if sequence.business_date == date_key else 1
    updated = ReceiptSequence(business_date=date_key, last_sequence=counter)
    return format_receipt_number(date_key, counter), updated
