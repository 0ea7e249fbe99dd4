"""
Central configuration for the purchasing core.

Collaborator endpoints, credentials, ledger accounts and lifecycle switches
are defined here. Override via environment variables or by passing a
Config instance directly.

Settings priority (highest wins):
  1. Environment variables
  2. config/purchasing_settings.json  (admin-editable, persisted)
  3. Hardcoded defaults in this file
"""
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

# Project root (directory containing this file)
PROJECT_ROOT = Path(__file__).parent

DEFAULT_OUTPUT_DIR = PROJECT_ROOT / "output"
DEFAULT_DB_PATH    = DEFAULT_OUTPUT_DIR / "purchasing.db"

DEFAULT_DEBIT_TEMPLATE    = "Purchase of {{ article }} from supplier {{ supplier }}"
DEFAULT_CREDIT_TEMPLATE   = "Payable to {{ supplier }}"
DEFAULT_REVERSAL_TEMPLATE = "Reversal of: {{ description }}"


def _as_flag(value) -> bool:
    """Boolean from env or settings-file text, where false/0/no switch it off."""
    if isinstance(value, str):
        return value.strip().lower() not in ("false", "0", "no")
    return bool(value)


def _env_flag(name: str, default: str) -> bool:
    return _as_flag(os.getenv(name, default))


def _env_timeout() -> Optional[float]:
    raw = os.getenv("HTTP_TIMEOUT")
    return float(raw) if raw else None


@dataclass
class Config:
    # --- Ledger service (accounting entries API) ---
    ledger_api_url: str = field(
        default_factory=lambda: os.getenv("LEDGER_API_URL", "http://localhost:8080").rstrip("/")
    )
    ledger_username: Optional[str] = field(
        default_factory=lambda: os.getenv("LEDGER_USERNAME")
    )
    ledger_password: Optional[str] = field(
        default_factory=lambda: os.getenv("LEDGER_PASSWORD")
    )

    # --- Table store ---
    # sqlite → local file at db_path (development, single site)
    # rest   → PostgREST-compatible endpoint at store_url
    store_backend: str = field(
        default_factory=lambda: os.getenv("STORE_BACKEND", "sqlite").lower()
    )
    store_url: Optional[str] = field(
        default_factory=lambda: os.getenv("STORE_URL")
    )
    store_api_key: Optional[str] = field(
        default_factory=lambda: os.getenv("STORE_API_KEY")
    )
    db_path: Path = field(
        default_factory=lambda: Path(os.getenv("DB_PATH", str(DEFAULT_DB_PATH)))
    )

    # None means no local timeout: a hung request simply delays completion.
    http_timeout_seconds: Optional[float] = field(default_factory=_env_timeout)

    # --- Ledger accounts ---
    inventory_account_id: int = field(
        default_factory=lambda: int(os.getenv("INVENTORY_ACCOUNT_ID", "1"))
    )
    payables_account_id: int = field(
        default_factory=lambda: int(os.getenv("PAYABLES_ACCOUNT_ID", "2"))
    )

    # --- Ledger entry descriptions (Jinja2, sandboxed) ---
    # Variables: article, supplier, order_code, total (reversal: description)
    debit_description_template:    str = DEFAULT_DEBIT_TEMPLATE
    credit_description_template:   str = DEFAULT_CREDIT_TEMPLATE
    reversal_description_template: str = DEFAULT_REVERSAL_TEMPLATE

    # --- Lifecycle ---
    strict_transitions: bool = field(
        default_factory=lambda: _env_flag("STRICT_TRANSITIONS", "true")
    )
    # Post a reversing credit when the credit leg fails after the debit leg succeeded.
    ledger_reverse_partial_posting: bool = field(
        default_factory=lambda: _env_flag("LEDGER_REVERSE_PARTIAL_POSTING", "false")
    )

    def __post_init__(self) -> None:
        """Overlay runtime-tunable settings from purchasing_settings.json if present."""
        config_dir = Path(os.getenv("CONFIG_DIR", str(PROJECT_ROOT / "config")))
        settings_file = config_dir / "purchasing_settings.json"
        if not settings_file.exists():
            return
        _type_map: dict[str, Callable[[Any], Any]] = {
            "ledger_api_url":                 str,
            "store_backend":                  str,
            "store_url":                      str,
            "inventory_account_id":           int,
            "payables_account_id":            int,
            "debit_description_template":     str,
            "credit_description_template":    str,
            "reversal_description_template":  str,
            "strict_transitions":             _as_flag,
            "ledger_reverse_partial_posting": _as_flag,
        }
        _env_names: dict[str, str] = {
            "ledger_api_url":                 "LEDGER_API_URL",
            "store_backend":                  "STORE_BACKEND",
            "store_url":                      "STORE_URL",
            "inventory_account_id":           "INVENTORY_ACCOUNT_ID",
            "payables_account_id":            "PAYABLES_ACCOUNT_ID",
            "strict_transitions":             "STRICT_TRANSITIONS",
            "ledger_reverse_partial_posting": "LEDGER_REVERSE_PARTIAL_POSTING",
        }
        try:
            with open(settings_file, encoding="utf-8") as f:
                overrides = {k: v for k, v in json.load(f).items() if not k.startswith("_")}
            for key, val in overrides.items():
                if key not in _type_map or not hasattr(self, key):
                    continue
                # Environment variables win over the settings file
                if _env_names.get(key) and os.getenv(_env_names[key]) is not None:
                    continue
                setattr(self, key, _type_map[key](val))
        except Exception as exc:
            logger.warning("Failed to load purchasing_settings.json: %s", exc)

    def ensure_output_dir(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
