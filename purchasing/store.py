"""
Remote table store over a PostgREST-compatible endpoint (e.g. Supabase).

The store contract shared with the SQLite implementation (database.py):

  select(table, filters=None, embed=None, order=None, limit=None) -> list[dict]
  get(table, record_id, embed=None)                               -> dict | None
  insert(table, record)                                           -> dict
  update(table, record_id, changes)                               -> dict | None
  delete(table, record_id)                                        -> bool
  generate_order_number()                                         -> str

filters  {column: value} equality filters
embed    {related_table: [columns]} denormalised join, returned under the
         related table's name, e.g. {"articles": ["description"]}
order    "<column>.asc" or "<column>.desc"
"""
import logging
import urllib.parse
from typing import Optional

from .errors import RemoteRequestError
from .http import JsonHttpClient

logger = logging.getLogger(__name__)

TABLE_DEPARTMENTS      = "departments"
TABLE_UNITS_OF_MEASURE = "units_of_measure"
TABLE_SUPPLIERS        = "suppliers"
TABLE_ARTICLES         = "articles"
TABLE_PURCHASE_ORDERS  = "purchase_orders"

ORDER_NUMBER_RPC = "generate_order_number"


def select_clause(embed: Optional[dict]) -> str:
    """Build a PostgREST select= value: "*,articles(description),suppliers(display_name)"."""
    parts = ["*"]
    for table, columns in (embed or {}).items():
        parts.append(f"{table}({','.join(columns) or '*'})")
    return ",".join(parts)


class RestStore:
    """Table store backed by a PostgREST-compatible HTTP API."""

    def __init__(self, base_url: str, http: JsonHttpClient) -> None:
        self.base_url = base_url.rstrip("/")
        self.http = http

    def _url(self, path: str, params: Optional[list[tuple[str, str]]] = None) -> str:
        url = f"{self.base_url}/rest/v1/{path}"
        if params:
            url += "?" + urllib.parse.urlencode(params, safe="*,().")
        return url

    @staticmethod
    def _filter_params(filters: Optional[dict]) -> list[tuple[str, str]]:
        params = []
        for column, value in (filters or {}).items():
            if isinstance(value, bool):
                value = "true" if value else "false"
            params.append((column, f"eq.{value}"))
        return params

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def select(
        self,
        table: str,
        filters: Optional[dict] = None,
        embed: Optional[dict] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        params = [("select", select_clause(embed))] + self._filter_params(filters)
        if order:
            params.append(("order", order))
        if limit is not None:
            params.append(("limit", str(limit)))
        rows = self.http.request("GET", self._url(table, params))
        return rows or []

    def get(self, table: str, record_id: str, embed: Optional[dict] = None) -> Optional[dict]:
        rows = self.select(table, filters={"id": record_id}, embed=embed, limit=1)
        return rows[0] if rows else None

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def insert(self, table: str, record: dict) -> dict:
        rows = self.http.request(
            "POST",
            self._url(table),
            [record],
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise RemoteRequestError(f"Insert into {table} returned no row")
        logger.info("Inserted %s row %s", table, rows[0].get("id"))
        return rows[0]

    def update(self, table: str, record_id: str, changes: dict) -> Optional[dict]:
        rows = self.http.request(
            "PATCH",
            self._url(table, self._filter_params({"id": record_id})),
            changes,
            headers={"Prefer": "return=representation"},
        )
        return rows[0] if rows else None

    def delete(self, table: str, record_id: str) -> bool:
        rows = self.http.request(
            "DELETE",
            self._url(table, self._filter_params({"id": record_id})),
            headers={"Prefer": "return=representation"},
        )
        return bool(rows)

    # ------------------------------------------------------------------
    # Remote procedures
    # ------------------------------------------------------------------

    def generate_order_number(self) -> str:
        code = self.http.request("POST", self._url(f"rpc/{ORDER_NUMBER_RPC}"), {})
        if not isinstance(code, str) or not code.strip():
            raise RemoteRequestError(f"{ORDER_NUMBER_RPC} returned no code", remote_text=repr(code))
        return code.strip()
