"""
Unit tests for local input validation.
"""
from datetime import date
from decimal import Decimal

import pytest

from models.purchase_order import OrderInput
from purchasing.errors import ValidationError
from purchasing.validator import (
    is_valid_department_name,
    parse_order_input,
    validate_department_name,
    validate_supplier,
)


@pytest.mark.unit
class TestParseOrderInput:
    """Tests for parse_order_input()."""

    def test_valid_input(self, order_data):
        order = parse_order_input(order_data)

        assert order.quantity == Decimal("10")
        assert order.unit_cost == Decimal("250.50")
        assert order.subtotal == Decimal("2505.00")
        assert order.state == "Pending"

    def test_defaults(self):
        order = parse_order_input({
            "article_id": "art-1", "supplier_id": "sup-1", "quantity": 1, "unit_cost": 0,
        })
        assert order.state == "Pending"
        assert order.order_date == date.today()

    def test_order_input_passes_through(self, order_data):
        order = OrderInput.model_validate(order_data)
        assert parse_order_input(order) is order

    def test_record_is_json_safe(self, order_data):
        record = parse_order_input(order_data).to_record()

        assert record["order_date"] == "2024-03-15"
        assert record["subtotal"] == "2505.00"
        assert "code" not in record

    @pytest.mark.parametrize("field,value,message", [
        ("quantity", "0", "Quantity must be a number greater than zero"),
        ("quantity", "-2", "Quantity must be a number greater than zero"),
        ("quantity", "ten", "Quantity must be a number greater than zero"),
        ("unit_cost", "-0.01", "Unit cost must be a number greater than or equal to zero"),
        ("article_id", "", "An article is required"),
        ("supplier_id", "", "A supplier is required"),
        ("state", "Shipped", "State must be one of Pending, Approved, Rejected, Completed"),
        ("order_date", "15/03/2024", "Order date must be a valid YYYY-MM-DD date"),
    ])
    def test_field_errors(self, order_data, field, value, message):
        order_data[field] = value

        with pytest.raises(ValidationError) as exc_info:
            parse_order_input(order_data)

        assert exc_info.value.errors == [message]

    def test_collects_every_problem(self, order_data):
        order_data.update(quantity="0", unit_cost="-1")
        del order_data["article_id"]

        with pytest.raises(ValidationError) as exc_info:
            parse_order_input(order_data)

        assert len(exc_info.value.errors) == 3

    def test_non_mapping_rejected(self):
        with pytest.raises(ValidationError):
            parse_order_input(["not", "a", "dict"])


@pytest.mark.unit
class TestValidateSupplier:

    def test_valid_supplier(self):
        validate_supplier("131-23456-9", "Tech Supplies SRL")

    def test_invalid_tax_id(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_supplier("131234567", "Tech Supplies SRL")
        assert len(exc_info.value.errors) == 1

    def test_missing_name_and_bad_id(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_supplier("", "   ")
        assert len(exc_info.value.errors) == 2


@pytest.mark.unit
class TestDepartmentName:

    @pytest.mark.parametrize("name", ["Compras", "Recursos Humanos", "Logística", " Añil "])
    def test_valid_names(self, name):
        assert is_valid_department_name(name) is True
        validate_department_name(name)

    @pytest.mark.parametrize("name", [None, "", "   ", "IT-2", "Ventas 1", "A" * 51])
    def test_invalid_names(self, name):
        assert is_valid_department_name(name) is False
        with pytest.raises(ValidationError):
            validate_department_name(name)

    def test_fifty_characters_allowed(self):
        assert is_valid_department_name("A" * 50) is True
