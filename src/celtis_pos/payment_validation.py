from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping, Sequence

from pydantic import ValidationError

from .exceptions import PaymentValidationError
from .models import PaymentDetail

PAYMENT_METHODS = ("cash", "card")
ZERO = Decimal("0")


@dataclass(frozen=True)
class PaymentValidationIssue:
    field: str
    reason: str


@dataclass(frozen=True)
class PaymentTotals:
    total_due: Decimal
    paid_total: Decimal
    missing_amount: Decimal
    change_due: Decimal
    cash_total: Decimal


@dataclass(frozen=True)
class PaymentValidationResult:
    ok: bool
    totals: PaymentTotals
    issues: list[PaymentValidationIssue]


def compute_payment_totals(total_due: Decimal, payments: Sequence[PaymentDetail]) -> PaymentTotals:
    paid_total = sum((Decimal(str(payment.amount)) for payment in payments), ZERO)
    cash_total = sum(
        (Decimal(str(payment.amount)) for payment in payments if payment.method == "cash"),
        ZERO,
    )
    missing_amount = max(total_due - paid_total, ZERO)
    change_due = max(paid_total - total_due, ZERO)
    return PaymentTotals(
        total_due=total_due,
        paid_total=paid_total,
        missing_amount=missing_amount,
        change_due=change_due,
        cash_total=cash_total,
    )


def normalize_payments(
    payments: Sequence[PaymentDetail | Mapping[str, Any]],
) -> tuple[list[PaymentDetail], list[PaymentValidationIssue]]:
    normalized: list[PaymentDetail] = []
    issues: list[PaymentValidationIssue] = []
    if not payments:
        issues.append(PaymentValidationIssue(field="payments", reason="at least one payment is required"))
        return normalized, issues
    for idx, payment in enumerate(payments):
        if isinstance(payment, PaymentDetail):
            payload = payment
        else:
            raw = dict(payment)
            raw["method"] = str(raw.get("method") or "").lower()
            try:
                payload = PaymentDetail.model_validate(raw)
            except ValidationError:
                issues.append(
                    PaymentValidationIssue(
                        field=f"payments[{idx}]",
                        reason=f"method must be one of {', '.join(PAYMENT_METHODS)} with a numeric amount",
                    )
                )
                continue
        if payload.amount <= 0:
            issues.append(PaymentValidationIssue(field=f"payments[{idx}].amount", reason="amount must be greater than 0"))
        normalized.append(payload)
    return normalized, issues


def validate_payments(
    *,
    total_due: Decimal | str,
    payments: Sequence[PaymentDetail | Mapping[str, Any]],
) -> PaymentValidationResult:
    """Full checkout check for the payment screen, including coverage and change rules."""
    normalized, issues = normalize_payments(payments)
    totals = compute_payment_totals(Decimal(str(total_due)), normalized)
    if normalized and totals.missing_amount > 0:
        issues.append(PaymentValidationIssue(field="payments", reason="payments do not cover total due"))
    if totals.change_due > totals.cash_total:
        issues.append(
            PaymentValidationIssue(field="payments", reason="change can only be given against cash payments")
        )
    return PaymentValidationResult(ok=not issues, totals=totals, issues=issues)


def require_recordable_payments(payments: Sequence[PaymentDetail | Mapping[str, Any]]) -> tuple[PaymentDetail, ...]:
    """Check the minimum a completed sale needs: a non-empty list of positive payments."""
    normalized, issues = normalize_payments(payments)
    if issues:
        reason = "; ".join(f"{issue.field}: {issue.reason}" for issue in issues)
        raise PaymentValidationError(
            message=f"Payment validation failed: {reason}",
            details=[{"field": issue.field, "reason": issue.reason} for issue in issues],
        )
    return tuple(normalized)
