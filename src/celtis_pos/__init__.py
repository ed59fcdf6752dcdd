from .calculator import TAX_RATE, SaleTotals, apply_totals, quantize_currency, recalculate
from .config import ConfigError, PosConfig, load_config
from .engine import TransactionEngine
from .exceptions import (
    EmptyCartError,
    InvalidTransitionError,
    NoActiveCashierError,
    NotFoundError,
    PaymentValidationError,
    PosError,
    PosValidationError,
    RefundReasonRequiredError,
    StoreError,
    UserFacingError,
    to_user_facing_error,
)
from .models import Cashier, LineItem, PaymentDetail, Product, Sale, SaleStatus
from .payment_validation import PaymentTotals, compute_payment_totals, validate_payments
from .receipts import ReceiptSequence, next_receipt
from .reports import SalesReport, build_sales_report
from .sale_state import ALLOWED_TRANSITIONS, SaleActionAvailability, ensure_transition, sale_action_availability
from .session import CashierDirectory, SessionContext
from .state import EngineState
from .store import JsonFileStore, MemoryStore, SaleStore

__version__ = "0.1.0"

__all__ = [
    "ALLOWED_TRANSITIONS",
    "Cashier",
    "CashierDirectory",
    "ConfigError",
    "EmptyCartError",
    "EngineState",
    "InvalidTransitionError",
    "JsonFileStore",
    "LineItem",
    "MemoryStore",
    "NoActiveCashierError",
    "NotFoundError",
    "PaymentDetail",
    "PaymentTotals",
    "PaymentValidationError",
    "PosConfig",
    "PosError",
    "PosValidationError",
    "Product",
    "ReceiptSequence",
    "RefundReasonRequiredError",
    "Sale",
    "SaleActionAvailability",
    "SaleStatus",
    "SaleStore",
    "SaleTotals",
    "SalesReport",
    "SessionContext",
    "StoreError",
    "TAX_RATE",
    "TransactionEngine",
    "UserFacingError",
    "apply_totals",
    "build_sales_report",
    "compute_payment_totals",
    "ensure_transition",
    "load_config",
    "next_receipt",
    "quantize_currency",
    "recalculate",
    "sale_action_availability",
    "to_user_facing_error",
    "validate_payments",
]
