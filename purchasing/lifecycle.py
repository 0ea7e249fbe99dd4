"""
Purchase order lifecycle.

PurchaseOrderLifecycle ties together validation, order-code generation,
persistence and ledger posting:

  create   validate → generate code → insert → post if created Approved
  update   validate → load → check transition → update → post if it entered Approved
  delete   remove the order (no ledger reversal, whatever was posted before)
  post     operator-triggered posting of an order that is already Approved

Posting fires on the *edge* into Approved only; saving an order that is
already Approved again does not post a second time.

Failure policy:
  - ValidationError / InvalidTransitionError: raised before any store write
  - store failure while saving: OrderSaveError, nothing else attempted
  - saved order that cannot be posted (zero total, missing names):
    UnpostableOrderError, no ledger call made
  - ledger failure after a successful save: OrderPostingError
  - in both posting cases the saved order stays as it is (no rollback, no
    automatic retry)

After every mutation the cached order list (``orders``) is re-queried from the
store rather than patched in place.
"""
import logging
from typing import Any, Optional

from config import Config
from models.ledger import PostingResult
from models.purchase_order import (
    ALL_STATES,
    STATE_APPROVED,
    STATE_COMPLETED,
    STATE_PENDING,
    STATE_REJECTED,
    EnrichedPurchaseOrder,
    OrderInput,
    PurchaseOrder,
)
from models.result import OrderSaveResult
from .database import SqliteStore
from .errors import (
    InvalidTransitionError,
    OrderNotFoundError,
    OrderPostingError,
    OrderSaveError,
    PurchasingError,
    RemoteRequestError,
    UnpostableOrderError,
    ValidationError,
)
from .http import JsonHttpClient
from .ledger_client import LedgerClient
from .ledger_poster import OrderLedgerPoster
from .order_numbers import OrderNumberGenerator
from .session import SessionContext, StaticCredential
from .store import TABLE_ARTICLES, TABLE_PURCHASE_ORDERS, TABLE_SUPPLIERS, RestStore
from .validator import parse_order_input

logger = logging.getLogger(__name__)

# Allowed state edges.  Staying in the same state is always allowed.
ALLOWED_TRANSITIONS: dict[str, frozenset] = {
    STATE_PENDING:   frozenset({STATE_APPROVED, STATE_REJECTED}),
    STATE_APPROVED:  frozenset({STATE_COMPLETED}),
    STATE_REJECTED:  frozenset(),
    STATE_COMPLETED: frozenset(),
}

# Denormalised columns fetched with every order
ORDER_EMBED = {
    TABLE_ARTICLES:  ["description", "brand"],
    TABLE_SUPPLIERS: ["display_name", "tax_id"],
}


def transition(current: str, requested: str, strict: bool = True) -> str:
    """
    Return the new state, or raise InvalidTransitionError.

    With strict=False any known state may replace any other.
    """
    if requested not in ALL_STATES:
        raise InvalidTransitionError(current, requested)
    if requested == current or not strict:
        return requested
    if requested not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(current, requested)
    return requested


def enters_approved(previous: Optional[str], new: str) -> bool:
    """True when a save moves an order into Approved (previous=None on create)."""
    return new == STATE_APPROVED and previous != STATE_APPROVED


def build_store(config: Config):
    """Open the table store selected by config.store_backend."""
    if config.store_backend == "rest":
        if not config.store_url:
            raise ValueError("STORE_URL is required when STORE_BACKEND=rest")
        headers = {"apikey": config.store_api_key} if config.store_api_key else {}
        http = JsonHttpClient(
            credentials=StaticCredential(config.store_api_key),
            timeout=config.http_timeout_seconds,
            default_headers=headers,
        )
        return RestStore(config.store_url, http)
    if config.store_backend == "sqlite":
        config.ensure_output_dir()
        return SqliteStore(config.db_path)
    raise ValueError(f"Unknown STORE_BACKEND {config.store_backend!r} (expected sqlite or rest)")


class PurchaseOrderLifecycle:
    """
    Orchestrates purchase order saves and the ledger posting they trigger.

    store:    table store (RestStore, SqliteStore, or anything with the same contract)
    poster:   OrderLedgerPoster
    numbers:  OrderNumberGenerator (defaults to one backed by the store's sequence)
    """

    def __init__(
        self,
        store: Any,
        poster: OrderLedgerPoster,
        numbers: Optional[OrderNumberGenerator] = None,
        strict_transitions: bool = True,
    ) -> None:
        self.store = store
        self.poster = poster
        self.numbers = numbers or OrderNumberGenerator(store)
        self.strict_transitions = strict_transitions
        self.orders: list[PurchaseOrder] = []

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "PurchaseOrderLifecycle":
        config = config or Config()
        store = build_store(config)
        session = SessionContext(
            config.ledger_api_url,
            config.ledger_username,
            config.ledger_password,
            http=JsonHttpClient(timeout=config.http_timeout_seconds),
        )
        ledger = LedgerClient(
            config.ledger_api_url,
            JsonHttpClient(credentials=session, timeout=config.http_timeout_seconds),
        )
        return cls(
            store,
            OrderLedgerPoster.from_config(config, ledger),
            OrderNumberGenerator(store),
            strict_transitions=config.strict_transitions,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create(self, data: OrderInput | dict) -> OrderSaveResult:
        """Create a new order in the submitted state; post it if that state is Approved."""
        order_input = parse_order_input(data)
        code = self.numbers.generate()

        try:
            row = self.store.insert(TABLE_PURCHASE_ORDERS, {"code": code, **order_input.to_record()})
        except RemoteRequestError as exc:
            logger.error("Saving new order %s failed: %s", code, exc)
            raise OrderSaveError(
                "Error saving purchase order", status=exc.status, remote_text=exc.remote_text
            ) from exc

        order = PurchaseOrder.model_validate(row)
        logger.info("Order %s created in state %s", order.code, order.state)
        self._audit(order.code, "created", {"state": order.state, "subtotal": order.subtotal})
        return self._after_save(order, previous_state=None)

    def update(self, order_id: str, data: OrderInput | dict) -> OrderSaveResult:
        """
        Apply the submitted field changes to an existing order.

        The order code is never changed.  Posting happens only when the edit
        moves the order into Approved.
        """
        order_input = parse_order_input(data)
        current = self.get(order_id)
        transition(current.state, order_input.state, strict=self.strict_transitions)

        try:
            row = self.store.update(TABLE_PURCHASE_ORDERS, order_id, order_input.to_record())
        except RemoteRequestError as exc:
            logger.error("Saving order %s failed: %s", current.code, exc)
            raise OrderSaveError(
                "Error saving purchase order", status=exc.status, remote_text=exc.remote_text
            ) from exc
        if row is None:
            raise OrderNotFoundError(order_id)

        order = PurchaseOrder.model_validate(row)
        if current.state != order.state:
            logger.info("Order %s moved %s → %s", order.code, current.state, order.state)
        self._audit(order.code, "updated", {"from": current.state, "to": order.state})
        return self._after_save(order, previous_state=current.state)

    def delete(self, order_id: str) -> bool:
        """Remove an order.  Ledger entries already posted for it are left untouched."""
        current = self.get(order_id)
        try:
            deleted = self.store.delete(TABLE_PURCHASE_ORDERS, order_id)
        except RemoteRequestError as exc:
            logger.error("Deleting order %s failed: %s", current.code, exc)
            raise OrderSaveError(
                "Error deleting purchase order", status=exc.status, remote_text=exc.remote_text
            ) from exc

        if deleted:
            if current.state in (STATE_APPROVED, STATE_COMPLETED):
                logger.warning("Order %s deleted; its ledger postings are not reversed", current.code)
            self._audit(current.code, "deleted", {"state": current.state})
        self.refresh()
        return deleted

    def post(self, order_id: str) -> PostingResult:
        """
        Post an Approved order to the ledger on operator request.

        No de-duplication is attempted: each call posts a full pair.
        """
        order = self.get(order_id)
        if order.state != STATE_APPROVED:
            raise ValidationError(f"Only approved orders can be posted; {order.code} is {order.state}")
        return self._post(order)

    def get(self, order_id: str, enriched: bool = False) -> PurchaseOrder:
        """Load one order; OrderNotFoundError if it does not exist."""
        try:
            row = self.store.get(
                TABLE_PURCHASE_ORDERS, order_id, embed=ORDER_EMBED if enriched else None
            )
        except RemoteRequestError as exc:
            raise OrderSaveError(
                "Error loading purchase order", status=exc.status, remote_text=exc.remote_text
            ) from exc
        if row is None:
            raise OrderNotFoundError(order_id)
        return PurchaseOrder.model_validate(row)

    def refresh(self, raise_errors: bool = False) -> list[PurchaseOrder]:
        """
        Re-query the cached order list (newest first, article and supplier embedded).

        After a mutation (raise_errors=False) a failed query is logged and the
        previous list is kept.  Callers that read the list directly pass
        raise_errors=True so an unreachable store surfaces as RemoteRequestError.
        """
        try:
            rows = self.store.select(TABLE_PURCHASE_ORDERS, embed=ORDER_EMBED, order="created_at.desc")
        except RemoteRequestError as exc:
            if raise_errors:
                raise
            logger.warning("Could not refresh purchase orders: %s", exc)
            return self.orders
        self.orders = [PurchaseOrder.model_validate(r) for r in rows]
        return self.orders

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _after_save(self, order: PurchaseOrder, previous_state: Optional[str]) -> OrderSaveResult:
        self.refresh()
        posting = None
        if enters_approved(previous_state, order.state):
            posting = self._post(order)
        return OrderSaveResult(order=order, posting=posting)

    def _post(self, order: PurchaseOrder) -> PostingResult:
        """Fetch the enriched order and post it; failures leave the order as saved."""
        try:
            enriched = EnrichedPurchaseOrder.from_order(self.get(order.id, enriched=True))
            result = self.poster.post(enriched)
        except ValidationError as exc:
            logger.error("Order %s saved but cannot be posted: %s", order.code, exc)
            self._audit(order.code, "posting_failed", {"error": str(exc)[:300], "movement_type": None})
            raise UnpostableOrderError(
                f"Order {order.code} was saved but cannot be posted: {exc}", order=order, errors=exc.errors
            ) from exc
        except PurchasingError as exc:
            logger.error("Order %s saved but ledger posting failed: %s", order.code, exc)
            self._audit(order.code, "posting_failed", {
                "error": str(exc)[:300],
                "movement_type": getattr(exc, "movement_type", None),
            })
            raise OrderPostingError(
                f"Order {order.code} was saved but its ledger posting failed", order=order, cause=exc
            ) from exc

        self._audit(order.code, "posted", {
            "total": result.total,
            "entries": [e.id for e in result.entries],
        })
        return result

    def _audit(self, order_code: str, action: str, detail: Optional[dict] = None) -> None:
        log_audit = getattr(self.store, "log_audit", None)
        if log_audit is None:
            return
        try:
            log_audit(order_code, action, detail=detail)
        except RemoteRequestError as exc:
            logger.warning("Audit log write failed for %s (%s): %s", order_code, action, exc)
