from pydantic import BaseModel
from typing import Optional

from .ledger import PostingResult
from .purchase_order import PurchaseOrder


class OrderSaveResult(BaseModel):
    """
    The outcome of a successful create or edit.
    posting is set only when the save moved the order into Approved.
    """
    order: PurchaseOrder
    posting: Optional[PostingResult] = None

    @property
    def posted(self) -> bool:
        return self.posting is not None
