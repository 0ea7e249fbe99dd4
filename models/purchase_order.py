from datetime import date
from decimal import Decimal
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .money import to_money

OrderState = Literal["Pending", "Approved", "Rejected", "Completed"]

STATE_PENDING   = "Pending"
STATE_APPROVED  = "Approved"
STATE_REJECTED  = "Rejected"
STATE_COMPLETED = "Completed"
ALL_STATES      = (STATE_PENDING, STATE_APPROVED, STATE_REJECTED, STATE_COMPLETED)


class ArticleSummary(BaseModel):
    """Article columns embedded into an order query."""
    description: Optional[str] = None
    brand: Optional[str] = None


class SupplierSummary(BaseModel):
    """Supplier columns embedded into an order query."""
    display_name: Optional[str] = None
    tax_id: Optional[str] = None


class OrderInput(BaseModel):
    """
    The fields an operator submits when creating or editing a purchase order.
    The order code is not part of the input: it is generated on create and
    never changes afterwards.
    """
    order_date: date = Field(default_factory=date.today)
    state: OrderState = STATE_PENDING
    article_id: str = Field(min_length=1)
    supplier_id: str = Field(min_length=1)
    quantity: Decimal = Field(gt=0)
    unit_cost: Decimal = Field(ge=0)

    @property
    def subtotal(self) -> Decimal:
        return to_money(self.quantity * self.unit_cost)

    def to_record(self) -> dict:
        """Return the JSON-safe column values to persist (subtotal included)."""
        record = self.model_dump(mode="json")
        record["subtotal"] = str(self.subtotal)
        return record


class PurchaseOrder(BaseModel):
    """
    A purchase order as stored by the persistence service.
    article / supplier are only populated when the query embeds them
    (the store returns them under the related table names).
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    code: str
    order_date: date
    state: OrderState
    article_id: str
    supplier_id: str
    quantity: Decimal
    unit_cost: Decimal
    subtotal: Optional[Decimal] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    article: Optional[ArticleSummary] = Field(default=None, alias="articles")
    supplier: Optional[SupplierSummary] = Field(default=None, alias="suppliers")

    @property
    def total(self) -> Decimal:
        """quantity × unit cost, rounded to cents."""
        return to_money(self.quantity * self.unit_cost)


class EnrichedPurchaseOrder(BaseModel):
    """
    An order with its human-readable article and supplier names resolved,
    as handed to the ledger poster.

    quantity / unit_cost may arrive as numeric-looking strings from the data
    layer; the poster coerces them.
    """
    code: str
    article_description: Optional[str] = None
    supplier_name: Optional[str] = None
    quantity: Union[Decimal, str]
    unit_cost: Union[Decimal, str]
    order_date: Optional[date] = None

    @classmethod
    def from_order(cls, order: PurchaseOrder) -> "EnrichedPurchaseOrder":
        return cls(
            code=order.code,
            article_description=order.article.description if order.article else None,
            supplier_name=order.supplier.display_name if order.supplier else None,
            quantity=order.quantity,
            unit_cost=order.unit_cost,
            order_date=order.order_date,
        )
