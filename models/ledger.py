from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MovementType = Literal["DB", "CR"]

DEBIT  = "DB"
CREDIT = "CR"


class LedgerEntryRequest(BaseModel):
    """One side of a posting, as sent to the ledger service."""
    description: str
    account_id: Union[int, str]
    movement_type: MovementType
    amount: Decimal = Field(gt=0)
    entry_date: Optional[date] = None

    def to_payload(self) -> dict:
        """
        Return the camelCase JSON body the ledger service expects.
        entryDate is omitted when not set so the service applies its default.
        """
        payload = {
            "description":  self.description,
            "accountId":    self.account_id,
            "movementType": self.movement_type,
            "amount":       str(self.amount),
        }
        if self.entry_date is not None:
            payload["entryDate"] = self.entry_date.isoformat()
        return payload


class LedgerEntry(BaseModel):
    """
    A ledger entry record returned by the ledger service.
    Entries are append-only: created, never updated or deleted.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: Optional[Union[int, str]] = None
    description: str
    account_id: Union[int, str]
    movement_type: MovementType
    amount: Decimal
    entry_date: Optional[str] = None


class PostingResult(BaseModel):
    """The outcome of posting one approved order to the ledger."""
    order_code: str
    total: Decimal
    entries: List[LedgerEntry] = Field(default_factory=list)

    @property
    def balanced(self) -> bool:
        """True when the entries form one debit and one credit of equal amount."""
        debits = [e.amount for e in self.entries if e.movement_type == DEBIT]
        credits = [e.amount for e in self.entries if e.movement_type == CREDIT]
        return len(debits) == 1 and len(credits) == 1 and debits[0] == credits[0]
