from .catalog import Department, UnitOfMeasure, Article
from .supplier import Supplier
from .purchase_order import (
    OrderInput, PurchaseOrder, EnrichedPurchaseOrder, ArticleSummary, SupplierSummary,
    OrderState, STATE_PENDING, STATE_APPROVED, STATE_REJECTED, STATE_COMPLETED, ALL_STATES,
)
from .ledger import LedgerEntryRequest, LedgerEntry, PostingResult, MovementType, DEBIT, CREDIT
from .result import OrderSaveResult

__all__ = [
    "Department", "UnitOfMeasure", "Article",
    "Supplier",
    "OrderInput", "PurchaseOrder", "EnrichedPurchaseOrder", "ArticleSummary", "SupplierSummary",
    "OrderState", "STATE_PENDING", "STATE_APPROVED", "STATE_REJECTED", "STATE_COMPLETED", "ALL_STATES",
    "LedgerEntryRequest", "LedgerEntry", "PostingResult", "MovementType", "DEBIT", "CREDIT",
    "OrderSaveResult",
]
