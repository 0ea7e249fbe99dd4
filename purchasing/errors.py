"""
Typed exceptions for the purchasing core.

Every class carries a machine-readable ``code`` and a non-technical
``user_message``.  The CLI shows ``user_message``; the technical text stays
in ``str(exc)`` and in the log.

    PurchasingError
    ├── ValidationError                 local precondition failed, nothing sent
    │   ├── InvalidOrderError
    │   │   └── UnpostableOrderError    order saved, posting precondition failed
    │   └── InvalidTransitionError
    ├── RemoteRequestError              a collaborator answered non-success
    │   ├── AuthenticationError
    │   ├── LedgerPostingError          one ledger leg was rejected
    │   │   └── OrderPostingError       order saved, posting step failed
    │   └── OrderSaveError              order create/edit/delete failed
    └── OrderNotFoundError
"""
from typing import Optional


class PurchasingError(Exception):
    """Base exception for all purchasing errors."""

    code: str = "PURCHASING_ERROR"
    user_message: str = "An unexpected error occurred."


# ---------------------------------------------------------------------------
# Local validation
# ---------------------------------------------------------------------------

class ValidationError(PurchasingError):
    """Input failed a local precondition.  Never reaches a collaborator."""

    code: str = "VALIDATION_ERROR"
    user_message: str = "The submitted data is not valid."

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        self.errors = errors or [message]
        super().__init__(message)


class InvalidOrderError(ValidationError):
    """The order handed to the ledger poster is missing or unusable."""

    code: str = "INVALID_ORDER"
    user_message: str = "Invalid order for generating the accounting entry."


class UnpostableOrderError(InvalidOrderError):
    """
    The order was saved but fails a posting precondition (zero total, missing
    article or supplier name).  No ledger call was made.

    ``order`` is the saved PurchaseOrder; it is not rolled back.
    """

    code: str = "ORDER_NOT_POSTABLE"
    user_message: str = "The order was saved but cannot generate an accounting entry."

    def __init__(self, message: str, order=None, errors: Optional[list[str]] = None):
        self.order = order
        super().__init__(message, errors=errors)


class InvalidTransitionError(ValidationError):
    """The requested state change is not an allowed edge."""

    code: str = "INVALID_TRANSITION"
    user_message: str = "The order cannot move to the requested state."

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move order from {current} to {requested}")


# ---------------------------------------------------------------------------
# Remote collaborators
# ---------------------------------------------------------------------------

class RemoteRequestError(PurchasingError):
    """A collaborator call returned a non-success response or was unreachable."""

    code: str = "REMOTE_REQUEST_FAILED"
    user_message: str = "The remote service could not complete the request."

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        remote_text: Optional[str] = None,
    ):
        self.status = status
        self.remote_text = remote_text
        if remote_text:
            message = f"{message}: {remote_text}"
        super().__init__(message)


class AuthenticationError(RemoteRequestError):
    """Login to the ledger service failed or no credentials are configured."""

    code: str = "AUTHENTICATION_FAILED"
    user_message: str = "Could not sign in to the accounting service."


class LedgerPostingError(RemoteRequestError):
    """The ledger service rejected one entry of a posting."""

    code: str = "LEDGER_POSTING_FAILED"
    user_message: str = "Error creating the accounting entry."

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        remote_text: Optional[str] = None,
        movement_type: Optional[str] = None,
    ):
        self.movement_type = movement_type
        # Compensating entry posted after a partial posting, if any
        self.reversal = None
        super().__init__(message, status=status, remote_text=remote_text)


class OrderPostingError(LedgerPostingError):
    """
    The order was saved but its posting step failed.

    ``order`` is the saved PurchaseOrder; it is not rolled back.
    """

    code: str = "ORDER_POSTING_FAILED"
    user_message: str = "Error saving the order or generating the accounting entry."

    def __init__(self, message: str, order=None, cause: Optional[Exception] = None):
        self.order = order
        super().__init__(
            message,
            status=getattr(cause, "status", None),
            remote_text=getattr(cause, "remote_text", None),
            movement_type=getattr(cause, "movement_type", None),
        )
        self.reversal = getattr(cause, "reversal", None)


class OrderSaveError(RemoteRequestError):
    """Persisting an order change failed; nothing after it was attempted."""

    code: str = "ORDER_SAVE_FAILED"
    user_message: str = "Error saving the order or generating the accounting entry."


class OrderNotFoundError(PurchasingError):
    """No purchase order exists with the given id."""

    code: str = "ORDER_NOT_FOUND"
    user_message: str = "The purchase order does not exist."

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Purchase order not found: {order_id}")
