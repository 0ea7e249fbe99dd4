from .errors import (
    PurchasingError, ValidationError, InvalidOrderError, InvalidTransitionError,
    RemoteRequestError, AuthenticationError, LedgerPostingError, OrderPostingError,
    OrderSaveError, OrderNotFoundError, UnpostableOrderError,
)
from .fiscal_id import validate_fiscal_id, format_fiscal_id, normalise_fiscal_id, fiscal_id_kind
from .order_numbers import OrderNumberGenerator, fallback_order_code
from .ledger_poster import OrderLedgerPoster
from .lifecycle import PurchaseOrderLifecycle, transition, build_store

__all__ = [
    "PurchasingError", "ValidationError", "InvalidOrderError", "InvalidTransitionError",
    "RemoteRequestError", "AuthenticationError", "LedgerPostingError", "OrderPostingError",
    "OrderSaveError", "OrderNotFoundError", "UnpostableOrderError",
    "validate_fiscal_id", "format_fiscal_id", "normalise_fiscal_id", "fiscal_id_kind",
    "OrderNumberGenerator", "fallback_order_code",
    "OrderLedgerPoster",
    "PurchaseOrderLifecycle", "transition", "build_store",
]
