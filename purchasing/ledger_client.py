"""
Client for the external accounting-entries (ledger) service.

  POST /api/v1/accounting-entries   create one entry
  GET  /api/v1/accounting-entries   list entries
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from pydantic import ValidationError as ModelValidationError

from models.ledger import LedgerEntry, LedgerEntryRequest
from .errors import LedgerPostingError, RemoteRequestError
from .http import JsonHttpClient

logger = logging.getLogger(__name__)

ENTRIES_PATH = "/api/v1/accounting-entries"


def _unwrap(body):
    """The service wraps some replies as {"data": ...}."""
    if isinstance(body, dict) and isinstance(body.get("data"), (dict, list)):
        return body["data"]
    return body


class LedgerClient:
    """Creates and lists ledger entries on behalf of the signed-in session."""

    def __init__(self, base_url: str, http: JsonHttpClient) -> None:
        self.base_url = base_url.rstrip("/")
        self.http = http

    @property
    def entries_url(self) -> str:
        return f"{self.base_url}{ENTRIES_PATH}"

    def create_entry(
        self,
        description: str,
        account_id: Union[int, str],
        movement_type: str,
        amount: Union[Decimal, int, float, str],
        entry_date: Optional[date] = None,
    ) -> LedgerEntry:
        """
        Create one ledger entry.

        Raises LedgerPostingError carrying the remote error text when the
        service rejects the entry.
        """
        request = LedgerEntryRequest(
            description=description,
            account_id=account_id,
            movement_type=movement_type,
            amount=amount,
            entry_date=entry_date,
        )
        try:
            body = self.http.request("POST", self.entries_url, request.to_payload())
        except RemoteRequestError as exc:
            raise LedgerPostingError(
                f"Error creating {movement_type} ledger entry",
                status=exc.status,
                remote_text=exc.remote_text,
                movement_type=movement_type,
            ) from exc

        record = _unwrap(body)
        if not isinstance(record, dict):
            # Service accepted the entry but echoed nothing useful back
            logger.warning("Ledger service returned no entry body for %s", movement_type)
            return LedgerEntry.model_validate(request.to_payload())
        logger.info(
            "Ledger entry created: %s account=%s amount=%s",
            movement_type, account_id, request.amount,
        )
        try:
            return LedgerEntry.model_validate({**request.to_payload(), **record})
        except ModelValidationError as exc:
            # The entry is booked remotely; only its echo is unreadable
            raise LedgerPostingError(
                f"Ledger accepted the {movement_type} entry but returned an unreadable record",
                remote_text=str(body)[:500],
                movement_type=movement_type,
            ) from exc

    def list_entries(self) -> list[LedgerEntry]:
        """Return all entries the service exposes to this session."""
        body = _unwrap(self.http.request("GET", self.entries_url))
        try:
            return [LedgerEntry.model_validate(row) for row in (body or [])]
        except ModelValidationError as exc:
            raise RemoteRequestError(
                "Ledger service returned unreadable entries", remote_text=str(exc)[:500]
            ) from exc
