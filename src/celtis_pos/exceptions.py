from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class PosError(Exception):
    message: str
    details: object | None = None
    code: str = field(default="POS_ERROR", init=False)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


@dataclass
class NoActiveCashierError(PosError):
    """No cashier is signed in to the register."""

    message: str = "No active cashier; sign in before starting a sale"
    code: str = field(default="NO_ACTIVE_CASHIER", init=False)


@dataclass
class EmptyCartError(PosError):
    message: str = "The cart has no items"
    code: str = field(default="EMPTY_CART", init=False)


@dataclass
class InvalidTransitionError(PosError):
    """Lifecycle precondition violated (wrong sale status for the action)."""

    code: str = field(default="INVALID_TRANSITION", init=False)


@dataclass
class NotFoundError(PosError):
    code: str = field(default="NOT_FOUND", init=False)


@dataclass
class PosValidationError(PosError):
    code: str = field(default="VALIDATION_ERROR", init=False)


@dataclass
class PaymentValidationError(PosValidationError):
    code: str = field(default="PAYMENT_INVALID", init=False)


@dataclass
class RefundReasonRequiredError(PosValidationError):
    message: str = "A refund reason is required"
    code: str = field(default="REFUND_REASON_REQUIRED", init=False)


@dataclass
class StoreError(PosError):
    """The state snapshot could not be written."""

    code: str = field(default="STORE_ERROR", init=False)


@dataclass(frozen=True)
class UserFacingError:
    message: str
    details: str | None = None

    @property
    def technical_details(self) -> str | None:
        if self.details:
            return self.details
        return None


def to_user_facing_error(exc: PosError) -> UserFacingError:
    primary = exc.message.strip() or "Operation failed"
    details = exc.code
    if exc.details:
        details = f"{details}: {exc.details}"
    return UserFacingError(message=primary, details=details)
