"""
Double-entry posting of an approved purchase order.

For one order with total = quantity × unit cost, two independent ledger
entries are created, in this order:

  1. DB  inventory account         "Purchase of <article> from supplier <supplier>"
  2. CR  accounts payable account  "Payable to <supplier>"

The two calls are not atomic.  If the debit succeeds and the credit fails,
the ledger is left with a single unbalanced entry and LedgerPostingError is
raised.  With reverse_partial_posting enabled, a reversing credit on the
inventory account is attempted first so the ledger nets to zero.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from jinja2 import TemplateError
from jinja2.sandbox import SandboxedEnvironment

from config import (
    DEFAULT_CREDIT_TEMPLATE,
    DEFAULT_DEBIT_TEMPLATE,
    DEFAULT_REVERSAL_TEMPLATE,
    Config,
)
from models.ledger import CREDIT, DEBIT, LedgerEntry, PostingResult
from models.money import to_decimal, to_money
from models.purchase_order import EnrichedPurchaseOrder
from .errors import InvalidOrderError, LedgerPostingError, RemoteRequestError
from .ledger_client import LedgerClient

logger = logging.getLogger(__name__)


class OrderLedgerPoster:
    """
    Emits the balanced debit/credit pair for one approved order.

    Usage:
        poster = OrderLedgerPoster(ledger_client)
        result = poster.post(enriched_order)
    """

    def __init__(
        self,
        ledger: LedgerClient,
        inventory_account_id: int | str = 1,
        payables_account_id: int | str = 2,
        debit_template: str = DEFAULT_DEBIT_TEMPLATE,
        credit_template: str = DEFAULT_CREDIT_TEMPLATE,
        reversal_template: str = DEFAULT_REVERSAL_TEMPLATE,
        reverse_partial_posting: bool = False,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.ledger = ledger
        self.inventory_account_id = inventory_account_id
        self.payables_account_id = payables_account_id
        self.reverse_partial_posting = reverse_partial_posting
        self._today = today

        # Descriptions are operator-editable; render them sandboxed, plain text.
        env = SandboxedEnvironment(autoescape=False, keep_trailing_newline=False)
        try:
            self._debit_template = env.from_string(debit_template)
            self._credit_template = env.from_string(credit_template)
            self._reversal_template = env.from_string(reversal_template)
        except TemplateError as e:
            raise ValueError(f"Invalid ledger description template: {e}") from e

    @classmethod
    def from_config(cls, config: Config, ledger: LedgerClient) -> "OrderLedgerPoster":
        return cls(
            ledger,
            inventory_account_id=config.inventory_account_id,
            payables_account_id=config.payables_account_id,
            debit_template=config.debit_description_template,
            credit_template=config.credit_description_template,
            reversal_template=config.reversal_description_template,
            reverse_partial_posting=config.ledger_reverse_partial_posting,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def order_total(self, order: EnrichedPurchaseOrder) -> Decimal:
        """Coerce quantity and unit cost and return their product rounded to cents."""
        try:
            quantity = to_decimal(order.quantity)
            unit_cost = to_decimal(order.unit_cost)
        except ValueError as e:
            raise InvalidOrderError(f"Order {order.code} has a non-numeric amount: {e}") from e
        return to_money(quantity * unit_cost)

    def post(self, order: Optional[EnrichedPurchaseOrder]) -> PostingResult:
        """
        Post the debit and credit entries for ``order``.

        Raises InvalidOrderError before any remote call when the order is
        missing, lacks its article/supplier names, or totals to zero or less.
        Raises LedgerPostingError when either entry is rejected.
        """
        if order is None:
            logger.error("Null order handed to ledger poster")
            raise InvalidOrderError("Invalid order for generating the accounting entry")

        total = self.order_total(order)
        if total <= 0:
            raise InvalidOrderError(f"Order {order.code} total must be positive, got {total}")
        if not order.article_description or not order.supplier_name:
            raise InvalidOrderError(
                f"Order {order.code} is missing its article description or supplier name"
            )

        context = {
            "article":    order.article_description,
            "supplier":   order.supplier_name,
            "order_code": order.code,
            "total":      total,
        }
        entry_date = self._today()

        debit = self.ledger.create_entry(
            description=self._debit_template.render(**context),
            account_id=self.inventory_account_id,
            movement_type=DEBIT,
            amount=total,
            entry_date=entry_date,
        )
        try:
            credit = self.ledger.create_entry(
                description=self._credit_template.render(**context),
                account_id=self.payables_account_id,
                movement_type=CREDIT,
                amount=total,
                entry_date=entry_date,
            )
        except LedgerPostingError as exc:
            logger.error(
                "Order %s left with an unbalanced posting: debit posted, credit failed (%s)",
                order.code, exc,
            )
            if self.reverse_partial_posting:
                exc.reversal = self._reverse(debit, total, entry_date, order.code)
            raise

        logger.info("Posted order %s: DB/CR %s", order.code, total)
        return PostingResult(order_code=order.code, total=total, entries=[debit, credit])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _reverse(
        self,
        debit: LedgerEntry,
        total: Decimal,
        entry_date: date,
        order_code: str,
    ) -> Optional[LedgerEntry]:
        """Offset a posted debit with a credit on the same account."""
        try:
            reversal = self.ledger.create_entry(
                description=self._reversal_template.render(
                    description=debit.description, order_code=order_code
                ),
                account_id=self.inventory_account_id,
                movement_type=CREDIT,
                amount=total,
                entry_date=entry_date,
            )
        except RemoteRequestError as exc:
            logger.error("Reversal of partial posting for order %s failed: %s", order_code, exc)
            return None
        logger.warning("Partial posting for order %s reversed", order_code)
        return reversal
