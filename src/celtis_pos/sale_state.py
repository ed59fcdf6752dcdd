from __future__ import annotations

from dataclasses import dataclass

from .exceptions import InvalidTransitionError
from .models import SaleStatus

ALLOWED_TRANSITIONS: dict[SaleStatus, frozenset[SaleStatus]] = {
    SaleStatus.DRAFT: frozenset({SaleStatus.PARKED, SaleStatus.COMPLETED, SaleStatus.VOIDED}),
    SaleStatus.PARKED: frozenset({SaleStatus.DRAFT}),
    SaleStatus.COMPLETED: frozenset({SaleStatus.REFUNDED}),
    SaleStatus.VOIDED: frozenset(),
    SaleStatus.REFUNDED: frozenset(),
}


@dataclass(frozen=True)
class SaleActionAvailability:
    can_edit_cart: bool
    can_park: bool
    can_resume: bool
    can_complete: bool
    can_void: bool
    can_refund: bool


def can_transition(current: SaleStatus | str, target: SaleStatus | str) -> bool:
    return SaleStatus(target) in ALLOWED_TRANSITIONS[SaleStatus(current)]


def ensure_transition(current: SaleStatus | str, target: SaleStatus | str) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(
            message=f"sale cannot move from {SaleStatus(current).value} to {SaleStatus(target).value}",
            details={"from": SaleStatus(current).value, "to": SaleStatus(target).value},
        )


def ensure_editable(status: SaleStatus | str) -> None:
    value = SaleStatus(status)
    if value is not SaleStatus.DRAFT:
        raise InvalidTransitionError(
            message=f"cart changes require a draft sale, got {value.value}",
            details={"status": value.value},
        )


def sale_action_availability(status: SaleStatus | str, *, item_count: int) -> SaleActionAvailability:
    value = SaleStatus(status)
    is_draft = value is SaleStatus.DRAFT
    return SaleActionAvailability(
        can_edit_cart=is_draft,
        can_park=is_draft and item_count > 0,
        can_resume=value is SaleStatus.PARKED,
        can_complete=is_draft and item_count > 0,
        can_void=is_draft,
        can_refund=value is SaleStatus.COMPLETED,
    )
