"""
Unit tests for the click command line.
"""
from datetime import date

import pytest
from click.testing import CliRunner

import main
from conftest import InMemoryStore, RecordingLedger
from main import cli
from purchasing.ledger_poster import OrderLedgerPoster
from purchasing.lifecycle import PurchaseOrderLifecycle


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def dead_store(monkeypatch):
    """Point every command at a store whose reads all fail."""
    store = InMemoryStore(fail_on={"select", "get"})
    poster = OrderLedgerPoster(RecordingLedger(), today=lambda: date(2024, 3, 15))
    monkeypatch.setattr(main, "_lifecycle", lambda ctx: PurchaseOrderLifecycle(store, poster))
    return store


@pytest.mark.unit
class TestIdentifierCommands:

    def test_validate_valid_id(self, runner):
        result = runner.invoke(cli, ["validate-id", "00112345673"])

        assert result.exit_code == 0
        assert "001-1234567-3" in result.output
        assert "personal" in result.output

    def test_validate_invalid_id_exits_non_zero(self, runner):
        result = runner.invoke(cli, ["validate-id", "131234567"])
        assert result.exit_code == 1

    def test_format_id(self, runner):
        result = runner.invoke(cli, ["format-id", "130112345"])

        assert result.exit_code == 0
        assert result.output.strip() == "130-11234-5"


@pytest.mark.unit
class TestOrderCommands:

    def test_create_and_list_pending_order(self, runner, test_config, seeded_db):
        result = runner.invoke(cli, [
            "create-order",
            "--article", seeded_db["article_id"],
            "--supplier", seeded_db["supplier_id"],
            "--quantity", "10",
            "--unit-cost", "250.50",
            "--date", "2024-03-15",
        ], obj={"config": test_config})

        assert result.exit_code == 0, result.output
        assert "Created order OC-" in result.output

        listed = runner.invoke(cli, ["orders", "--state", "Pending"], obj={"config": test_config})
        assert listed.exit_code == 0
        assert "1 order(s)" in listed.output
        assert "Laptop / Tech Supplies SRL" in listed.output

    def test_validation_error_prints_user_message(self, runner, test_config, seeded_db):
        result = runner.invoke(cli, [
            "create-order",
            "--article", seeded_db["article_id"],
            "--supplier", seeded_db["supplier_id"],
            "--quantity", "0",
            "--unit-cost", "1",
        ], obj={"config": test_config})

        assert result.exit_code == 1
        assert "Quantity must be a number greater than zero" in result.output

    def test_post_missing_order(self, runner, test_config):
        result = runner.invoke(cli, ["post-order", "no-such-id"], obj={"config": test_config})

        assert result.exit_code == 1
        assert "does not exist" in result.output


@pytest.mark.unit
class TestUnreachableStore:

    def test_check_reports_store_failure(self, runner, test_config, dead_store):
        result = runner.invoke(cli, ["check"], obj={"config": test_config})

        assert result.exit_code == 1
        assert "Table store:     ✗" in result.output
        assert "reachable" not in result.output

    def test_orders_exits_non_zero(self, runner, test_config, dead_store):
        result = runner.invoke(cli, ["orders"], obj={"config": test_config})

        assert result.exit_code == 1
        assert "could not complete the request" in result.output
        assert "order(s)" not in result.output


@pytest.mark.unit
class TestCatalogCommands:

    def test_add_and_list_supplier(self, runner, test_config):
        result = runner.invoke(cli, ["add-supplier", "131234569", "Tech Supplies SRL"], obj={"config": test_config})

        assert result.exit_code == 0, result.output
        assert "131-23456-9" in result.output

        listed = runner.invoke(cli, ["suppliers"], obj={"config": test_config})
        assert "1 supplier(s)" in listed.output
        assert "Tech Supplies SRL" in listed.output

    def test_invalid_tax_id_is_not_saved(self, runner, test_config):
        result = runner.invoke(cli, ["add-supplier", "131234567", "Bad Id SRL"], obj={"config": test_config})

        assert result.exit_code == 1
        assert "Tax id must be a valid" in result.output
        listed = runner.invoke(cli, ["suppliers"], obj={"config": test_config})
        assert "0 supplier(s)" in listed.output

    def test_invalid_department_name(self, runner, test_config):
        result = runner.invoke(cli, ["add-department", "Dept #3"], obj={"config": test_config})

        assert result.exit_code == 1
        assert "only letters and spaces" in result.output
