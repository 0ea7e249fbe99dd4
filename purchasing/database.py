"""
SQLite table store for local and single-site use.

Implements the same contract as RestStore (see store.py) against a single
database file (output/purchasing.db), plus:

  - a per-day order-number sequence (generate_order_number)
  - an append-only audit log of order mutations and posting outcomes

Each operation opens a short-lived connection (WAL mode), commits on success
and rolls back on error, so several processes can share the file. SQLite
errors are raised as RemoteRequestError, the same class a remote store
raises, so callers handle both backends alike.
"""
import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from .errors import RemoteRequestError
from .store import (
    TABLE_ARTICLES,
    TABLE_DEPARTMENTS,
    TABLE_PURCHASE_ORDERS,
    TABLE_SUPPLIERS,
    TABLE_UNITS_OF_MEASURE,
)

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS departments (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    active      INTEGER NOT NULL DEFAULT 1,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS units_of_measure (
    id          TEXT PRIMARY KEY,
    description TEXT NOT NULL,
    active      INTEGER NOT NULL DEFAULT 1,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS suppliers (
    id            TEXT PRIMARY KEY,
    tax_id        TEXT NOT NULL UNIQUE,
    display_name  TEXT NOT NULL,
    active        INTEGER NOT NULL DEFAULT 1,
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS articles (
    id                  TEXT PRIMARY KEY,
    description         TEXT NOT NULL,
    brand               TEXT,
    unit_of_measure_id  TEXT NOT NULL REFERENCES units_of_measure (id),
    stock               REAL NOT NULL DEFAULT 0,
    active              INTEGER NOT NULL DEFAULT 1,
    created_at          TEXT NOT NULL,
    updated_at          TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS purchase_orders (
    id           TEXT PRIMARY KEY,
    code         TEXT NOT NULL UNIQUE,
    order_date   TEXT NOT NULL,
    state        TEXT NOT NULL DEFAULT 'Pending'
                 CHECK (state IN ('Pending', 'Approved', 'Rejected', 'Completed')),
    article_id   TEXT NOT NULL REFERENCES articles (id),
    supplier_id  TEXT NOT NULL REFERENCES suppliers (id),
    quantity     REAL NOT NULL CHECK (quantity > 0),
    unit_cost    REAL NOT NULL CHECK (unit_cost >= 0),
    subtotal     REAL,
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_orders_state      ON purchase_orders (state);
CREATE INDEX IF NOT EXISTS idx_orders_created_at ON purchase_orders (created_at DESC);

-- One counter row per calendar day: OC-YYYYMMDD-NNNN
CREATE TABLE IF NOT EXISTS order_sequences (
    day         TEXT PRIMARY KEY,   -- YYYYMMDD
    last_value  INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS audit_log (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    order_code  TEXT    NOT NULL,
    timestamp   TEXT    NOT NULL,   -- ISO-8601 UTC
    action      TEXT    NOT NULL,   -- created | updated | deleted | posted | posting_failed
    actor       TEXT    NOT NULL DEFAULT 'system',
    detail      TEXT                -- optional JSON blob with action-specific context
);

CREATE INDEX IF NOT EXISTS idx_audit_code      ON audit_log (order_code);
CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON audit_log (timestamp DESC);
"""

# Writable / filterable columns per table (id and timestamps are managed here)
_COLUMNS: dict[str, tuple[str, ...]] = {
    TABLE_DEPARTMENTS:      ("name", "active"),
    TABLE_UNITS_OF_MEASURE: ("description", "active"),
    TABLE_SUPPLIERS:        ("tax_id", "display_name", "active"),
    TABLE_ARTICLES:         ("description", "brand", "unit_of_measure_id", "stock", "active"),
    TABLE_PURCHASE_ORDERS:  ("code", "order_date", "state", "article_id", "supplier_id",
                             "quantity", "unit_cost", "subtotal"),
}
_MANAGED_COLUMNS = ("id", "created_at", "updated_at")

# Embeddable relations: table → {related table: foreign key column}
_RELATIONS: dict[str, dict[str, str]] = {
    TABLE_ARTICLES:        {TABLE_UNITS_OF_MEASURE: "unit_of_measure_id"},
    TABLE_PURCHASE_ORDERS: {TABLE_ARTICLES: "article_id", TABLE_SUPPLIERS: "supplier_id"},
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_dict(row: sqlite3.Row) -> dict:
    record = dict(row)
    if "active" in record:
        record["active"] = bool(record["active"])
    return record


class SqliteStore:
    """Thin wrapper around an SQLite database file implementing the store contract."""

    def __init__(self, db_path: Path, today: Callable[[], date] = date.today) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._today = today
        self._init_schema()

    # ------------------------------------------------------------------
    # Connection management
    # ------------------------------------------------------------------

    @contextmanager
    def _conn(self):
        conn = sqlite3.connect(str(self.db_path), timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA foreign_keys=ON")
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("SQLite operation failed on %s: %s", self.db_path.name, exc)
            raise RemoteRequestError("Table store operation failed", remote_text=str(exc)) from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._conn() as conn:
            conn.executescript(_SCHEMA)
        logger.debug("Database schema ready: %s", self.db_path)

    @staticmethod
    def _check_columns(table: str, columns) -> None:
        if table not in _COLUMNS:
            raise ValueError(f"Unknown table {table!r}")
        allowed = set(_COLUMNS[table]) | set(_MANAGED_COLUMNS)
        unknown = [c for c in columns if c not in allowed]
        if unknown:
            raise ValueError(f"Unknown column(s) for {table}: {', '.join(unknown)}")

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
        filters = filters or {}
        self._check_columns(table, filters)

        clauses = [f"{column} = ?" for column in filters]
        params: list = list(filters.values())
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        order_sql = "ORDER BY rowid"
        if order:
            column, _, direction = order.partition(".")
            self._check_columns(table, [column])
            direction = "DESC" if direction.lower() == "desc" else "ASC"
            order_sql = f"ORDER BY {column} {direction}, rowid {direction}"

        limit_sql = ""
        if limit is not None:
            limit_sql = "LIMIT ?"
            params.append(limit)

        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {table} {where} {order_sql} {limit_sql}", params
            ).fetchall()
            records = [_row_to_dict(r) for r in rows]
            for related, columns in (embed or {}).items():
                self._embed(conn, table, records, related, columns)
        return records

    def _embed(self, conn, table: str, records: list[dict], related: str, columns) -> None:
        foreign_key = _RELATIONS.get(table, {}).get(related)
        if foreign_key is None:
            raise ValueError(f"{related} cannot be embedded into {table}")
        self._check_columns(related, columns)
        for record in records:
            row = conn.execute(
                f"SELECT * FROM {related} WHERE id = ?", (record.get(foreign_key),)
            ).fetchone()
            if row is None:
                record[related] = None
                continue
            related_record = _row_to_dict(row)
            record[related] = (
                {c: related_record.get(c) for c in columns} if columns else related_record
            )

    def get(self, table: str, record_id: str, embed: Optional[dict] = None) -> Optional[dict]:
        rows = self.select(table, filters={"id": record_id}, embed=embed, limit=1)
        return rows[0] if rows else None

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def insert(self, table: str, record: dict) -> dict:
        self._check_columns(table, record)
        now = _now()
        row = {"id": str(uuid.uuid4()), "created_at": now, "updated_at": now, **record}
        columns = ", ".join(row)
        placeholders = ", ".join(f":{c}" for c in row)
        with self._conn() as conn:
            conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", row)
        logger.info("DB inserted: %s %s", table, row["id"])
        return self.get(table, row["id"])

    def update(self, table: str, record_id: str, changes: dict) -> Optional[dict]:
        changes = {k: v for k, v in changes.items() if k not in _MANAGED_COLUMNS}
        self._check_columns(table, changes)
        assignments = ", ".join(f"{c} = :{c}" for c in [*changes, "updated_at"])
        with self._conn() as conn:
            conn.execute(
                f"UPDATE {table} SET {assignments} WHERE id = :_id",
                {**changes, "updated_at": _now(), "_id": record_id},
            )
            changed = conn.execute("SELECT changes()").fetchone()[0]
        if not changed:
            return None
        logger.info("DB updated: %s %s (%s)", table, record_id, ", ".join(changes))
        return self.get(table, record_id)

    def delete(self, table: str, record_id: str) -> bool:
        self._check_columns(table, [])
        with self._conn() as conn:
            conn.execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
            return conn.execute("SELECT changes()").fetchone()[0] > 0

    # ------------------------------------------------------------------
    # Sequence
    # ------------------------------------------------------------------

    def generate_order_number(self) -> str:
        """Return the next OC-YYYYMMDD-NNNN code for today; unique within this file."""
        day = self._today().strftime("%Y%m%d")
        with self._conn() as conn:
            conn.execute(
                """INSERT INTO order_sequences (day, last_value) VALUES (?, 1)
                   ON CONFLICT(day) DO UPDATE SET last_value = last_value + 1""",
                (day,),
            )
            value = conn.execute(
                "SELECT last_value FROM order_sequences WHERE day = ?", (day,)
            ).fetchone()[0]
        return f"OC-{day}-{value:04d}"

    # ------------------------------------------------------------------
    # Audit log
    # ------------------------------------------------------------------

    def log_audit(
        self,
        order_code: str,
        action: str,
        actor: str = "system",
        detail: Optional[dict] = None,
    ) -> None:
        """Append one entry to the audit log."""
        with self._conn() as conn:
            conn.execute(
                """INSERT INTO audit_log (order_code, timestamp, action, actor, detail)
                   VALUES (?, ?, ?, ?, ?)""",
                (
                    order_code,
                    _now(),
                    action,
                    actor,
                    json.dumps(detail, default=str) if detail is not None else None,
                ),
            )

    def get_audit_log(self, order_code: str) -> list[dict]:
        """Return all audit entries for one order, oldest first."""
        with self._conn() as conn:
            rows = conn.execute(
                """SELECT id, timestamp, action, actor, detail
                   FROM audit_log WHERE order_code = ?
                   ORDER BY timestamp ASC, id ASC""",
                (order_code,),
            ).fetchall()
        return [dict(r) for r in rows]
