"""
Unit tests for configuration defaults, environment variables and the
purchasing_settings.json overlay.
"""
import json
from pathlib import Path

import pytest

from config import Config


@pytest.fixture
def settings_dir(temp_dir: Path, monkeypatch) -> Path:
    config_dir = temp_dir / "config"
    config_dir.mkdir()
    monkeypatch.setenv("CONFIG_DIR", str(config_dir))
    for name in ("INVENTORY_ACCOUNT_ID", "PAYABLES_ACCOUNT_ID", "STRICT_TRANSITIONS",
                 "LEDGER_REVERSE_PARTIAL_POSTING", "STORE_BACKEND", "HTTP_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    return config_dir


@pytest.mark.unit
class TestConfig:
    """Tests for Config."""

    def test_defaults(self, settings_dir):
        config = Config()

        assert config.inventory_account_id == 1
        assert config.payables_account_id == 2
        assert config.store_backend == "sqlite"
        assert config.strict_transitions is True
        assert config.ledger_reverse_partial_posting is False
        assert config.http_timeout_seconds is None

    def test_environment_variables(self, settings_dir, monkeypatch):
        monkeypatch.setenv("INVENTORY_ACCOUNT_ID", "1400")
        monkeypatch.setenv("STRICT_TRANSITIONS", "false")
        monkeypatch.setenv("HTTP_TIMEOUT", "7.5")

        config = Config()

        assert config.inventory_account_id == 1400
        assert config.strict_transitions is False
        assert config.http_timeout_seconds == 7.5

    def test_settings_file_overlay(self, settings_dir):
        (settings_dir / "purchasing_settings.json").write_text(json.dumps({
            "_comment": "ignored",
            "payables_account_id": "2100",
            "ledger_reverse_partial_posting": True,
            "credit_description_template": "AP {{ supplier }}",
            "unknown_key": 1,
        }))

        config = Config()

        assert config.payables_account_id == 2100
        assert config.ledger_reverse_partial_posting is True
        assert config.credit_description_template == "AP {{ supplier }}"

    def test_environment_wins_over_settings_file(self, settings_dir, monkeypatch):
        (settings_dir / "purchasing_settings.json").write_text(
            json.dumps({"inventory_account_id": 9})
        )
        monkeypatch.setenv("INVENTORY_ACCOUNT_ID", "5")

        assert Config().inventory_account_id == 5

    def test_broken_settings_file_is_ignored(self, settings_dir):
        (settings_dir / "purchasing_settings.json").write_text("{not json")

        assert Config().inventory_account_id == 1

    @pytest.mark.parametrize("raw,expected", [
        ("false", False),
        ("No", False),
        ("0", False),
        (0, False),
        (False, False),
        ("true", True),
        (1, True),
    ])
    def test_settings_file_flags(self, settings_dir, raw, expected):
        (settings_dir / "purchasing_settings.json").write_text(json.dumps({
            "strict_transitions": raw,
            "ledger_reverse_partial_posting": raw,
        }))

        config = Config()

        assert config.strict_transitions is expected
        assert config.ledger_reverse_partial_posting is expected
