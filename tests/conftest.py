"""
Pytest configuration and shared fixtures for the purchasing test suite.
"""
import copy
import io
import json
import os
import shutil
import tempfile
import urllib.error
import uuid
from datetime import date
from pathlib import Path
from typing import Generator, Optional

import pytest

# Run from the project root so relative paths resolve as in production
PROJECT_ROOT = Path(__file__).parent.parent
os.chdir(PROJECT_ROOT)

TODAY = date(2024, 3, 15)

VALID_PERSONAL_ID = "001-1234567-3"
VALID_BUSINESS_ID = "131234569"


class _Response:
    def __init__(self, body: str):
        self._body = body.encode("utf-8")

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeOpener:
    """
    Replays scripted replies in place of urllib's urlopen and records each request.

    A reply is either (status, body) or an exception instance to raise.
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests = []

    def __call__(self, req, timeout=None):
        self.requests.append(req)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        status, body = reply
        if status >= 400:
            raise urllib.error.HTTPError(
                req.full_url, status, "error", {}, io.BytesIO(body.encode("utf-8"))
            )
        return _Response(body)

    def body(self, index: int):
        return json.loads(self.requests[index].data.decode("utf-8"))


class RecordingLedger:
    """
    Stand-in for LedgerClient that records every create_entry call.

    fail_on: movement types ("DB" / "CR") whose entries are rejected with a
             LedgerPostingError, as the real client raises.
    """

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.calls: list[dict] = []

    def create_entry(self, description, account_id, movement_type, amount, entry_date=None):
        from models.ledger import LedgerEntry
        from purchasing.errors import LedgerPostingError

        call = {
            "description": description,
            "account_id": account_id,
            "movement_type": movement_type,
            "amount": amount,
            "entry_date": entry_date,
        }
        self.calls.append(call)
        if movement_type in self.fail_on:
            # Only the first matching call fails, so a reversal can still go through
            self.fail_on.discard(movement_type)
            raise LedgerPostingError(
                f"Error creating {movement_type} ledger entry",
                status=500,
                remote_text="ledger unavailable",
                movement_type=movement_type,
            )
        return LedgerEntry(
            id=len(self.calls),
            description=description,
            account_id=account_id,
            movement_type=movement_type,
            amount=amount,
            entry_date=entry_date.isoformat() if entry_date else None,
        )

    def list_entries(self):
        return []


class InMemoryStore:
    """
    Dict-backed table store with the same contract as RestStore / SqliteStore.

    fail_on: method names ("insert", "update", "get", "select", "delete",
             "generate_order_number") that raise RemoteRequestError.
    """

    def __init__(self, fail_on=()):
        self.tables: dict[str, dict[str, dict]] = {}
        self.fail_on = set(fail_on)
        self.writes: list[tuple[str, str]] = []
        self.audit: list[tuple[str, str, Optional[dict]]] = []
        self._sequence = 0
        self._clock = 0

    def _maybe_fail(self, method: str) -> None:
        from purchasing.errors import RemoteRequestError
        if method in self.fail_on:
            raise RemoteRequestError(f"{method} failed", status=503, remote_text="store unavailable")

    def _embed(self, table: str, record: dict, embed: Optional[dict]) -> dict:
        record = copy.deepcopy(record)
        keys = {"articles": "article_id", "suppliers": "supplier_id", "units_of_measure": "unit_of_measure_id"}
        for related, columns in (embed or {}).items():
            row = self.tables.get(related, {}).get(record.get(keys[related]))
            record[related] = {c: row.get(c) for c in columns} if row else None
        return record

    def add(self, table: str, **record) -> dict:
        """Seed a row without going through the recorded write path."""
        record.setdefault("id", str(uuid.uuid4()))
        self.tables.setdefault(table, {})[record["id"]] = record
        return record

    def select(self, table, filters=None, embed=None, order=None, limit=None):
        self._maybe_fail("select")
        rows = [
            self._embed(table, r, embed)
            for r in self.tables.get(table, {}).values()
            if all(r.get(k) == v for k, v in (filters or {}).items())
        ]
        if order:
            column, _, direction = order.partition(".")
            rows.sort(key=lambda r: r.get(column) or "", reverse=direction == "desc")
        return rows[:limit] if limit is not None else rows

    def get(self, table, record_id, embed=None):
        self._maybe_fail("get")
        row = self.tables.get(table, {}).get(record_id)
        return self._embed(table, row, embed) if row else None

    def insert(self, table, record):
        self.writes.append(("insert", table))
        self._maybe_fail("insert")
        self._clock += 1
        stamp = f"2024-03-15T10:00:{self._clock:02d}+00:00"
        row = {"id": str(uuid.uuid4()), "created_at": stamp, "updated_at": stamp, **record}
        self.tables.setdefault(table, {})[row["id"]] = row
        return copy.deepcopy(row)

    def update(self, table, record_id, changes):
        self.writes.append(("update", table))
        self._maybe_fail("update")
        row = self.tables.get(table, {}).get(record_id)
        if row is None:
            return None
        row.update(changes)
        return copy.deepcopy(row)

    def delete(self, table, record_id):
        self.writes.append(("delete", table))
        self._maybe_fail("delete")
        return self.tables.get(table, {}).pop(record_id, None) is not None

    def generate_order_number(self):
        self._maybe_fail("generate_order_number")
        self._sequence += 1
        return f"OC-{TODAY:%Y%m%d}-{self._sequence:04d}"

    def log_audit(self, order_code, action, actor="system", detail=None):
        self.audit.append((order_code, action, detail))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files."""
    tmp_path = tempfile.mkdtemp(prefix="purchasing_test_")
    yield Path(tmp_path)
    shutil.rmtree(tmp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path, monkeypatch) -> "Config":
    """Provide a test configuration with an isolated database and no settings file."""
    from config import Config

    monkeypatch.setenv("CONFIG_DIR", str(temp_dir / "config"))
    config = Config()
    config.store_backend = "sqlite"
    config.db_path = temp_dir / "output" / "purchasing.db"
    config.ledger_api_url = "http://ledger.test"
    config.ledger_username = "buyer"
    config.ledger_password = "secret"
    config.strict_transitions = True
    config.ledger_reverse_partial_posting = False
    return config


@pytest.fixture
def test_db(test_config) -> "SqliteStore":
    """Provide a SQLite store on a fresh database file."""
    from purchasing.database import SqliteStore
    return SqliteStore(test_config.db_path, today=lambda: TODAY)


@pytest.fixture
def ledger() -> RecordingLedger:
    return RecordingLedger()


@pytest.fixture
def memory_store() -> InMemoryStore:
    """In-memory store seeded with one article and one supplier."""
    store = InMemoryStore()
    store.add("articles", id="art-1", description="Laptop", brand="Acme")
    store.add("suppliers", id="sup-1", display_name="Tech Supplies SRL", tax_id=VALID_BUSINESS_ID)
    return store


@pytest.fixture
def seeded_db(test_db) -> dict:
    """Insert a unit of measure, an article and a supplier; return their ids."""
    unit = test_db.insert("units_of_measure", {"description": "Unit"})
    article = test_db.insert("articles", {
        "description": "Laptop",
        "brand": "Acme",
        "unit_of_measure_id": unit["id"],
    })
    supplier = test_db.insert("suppliers", {
        "tax_id": VALID_BUSINESS_ID,
        "display_name": "Tech Supplies SRL",
    })
    return {"unit_id": unit["id"], "article_id": article["id"], "supplier_id": supplier["id"]}


@pytest.fixture
def order_data() -> dict:
    """Submitted fields for a 10 × 250.50 order on the seeded in-memory catalog."""
    return {
        "order_date": TODAY.isoformat(),
        "state": "Pending",
        "article_id": "art-1",
        "supplier_id": "sup-1",
        "quantity": "10",
        "unit_cost": "250.50",
    }


# Configure pytest markers
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
