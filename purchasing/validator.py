"""
Local input validation.

Everything here runs before any collaborator call.  Failures raise
ValidationError with one human-readable message per problem in ``errors``.

Checks:
  Orders:       article and supplier required, quantity > 0, unit cost >= 0,
                known state, ISO date
  Suppliers:    tax id passes the fiscal identifier checksum, name required
  Departments:  letters and spaces only, at most 50 characters
"""
import logging
import re
from typing import Any, Optional

import pydantic

from models.purchase_order import OrderInput
from .errors import ValidationError
from .fiscal_id import validate_fiscal_id

logger = logging.getLogger(__name__)

DEPARTMENT_NAME_MAX_LENGTH = 50
_DEPARTMENT_NAME = re.compile(r"^[A-Za-zÁÉÍÓÚáéíóúÑñ ]+$")

# Friendlier wording for the pydantic constraint messages on order fields
_ORDER_FIELD_MESSAGES = {
    "article_id":  "An article is required",
    "supplier_id": "A supplier is required",
    "quantity":    "Quantity must be a number greater than zero",
    "unit_cost":   "Unit cost must be a number greater than or equal to zero",
    "state":       "State must be one of Pending, Approved, Rejected, Completed",
    "order_date":  "Order date must be a valid YYYY-MM-DD date",
}


def parse_order_input(raw: Any) -> OrderInput:
    """
    Build an OrderInput from a dict (or pass one through), translating
    pydantic errors into a single ValidationError.
    """
    if isinstance(raw, OrderInput):
        return raw
    if not isinstance(raw, dict):
        raise ValidationError("Order data must be a mapping of field values")
    try:
        return OrderInput.model_validate(raw)
    except pydantic.ValidationError as e:
        errors: list[str] = []
        for err in e.errors():
            field = str(err["loc"][0]) if err.get("loc") else ""
            message = _ORDER_FIELD_MESSAGES.get(field, f"{field}: {err['msg']}")
            if message not in errors:
                errors.append(message)
        logger.debug("Order input rejected: %s", errors)
        raise ValidationError("Invalid purchase order: " + "; ".join(errors), errors) from None


def validate_supplier(tax_id: Optional[str], display_name: Optional[str]) -> None:
    """Raise ValidationError unless the supplier's tax id and name are acceptable."""
    errors = []
    if not validate_fiscal_id(tax_id):
        errors.append("Tax id must be a valid 11-digit personal or 9-digit business identifier")
    if not display_name or not display_name.strip():
        errors.append("Display name is required")
    if errors:
        raise ValidationError("Invalid supplier: " + "; ".join(errors), errors)


def is_valid_department_name(name: Optional[str]) -> bool:
    """Letters (accented included) and spaces only, 1-50 characters after trimming."""
    if not name:
        return False
    trimmed = name.strip()
    return bool(_DEPARTMENT_NAME.match(trimmed)) and len(trimmed) <= DEPARTMENT_NAME_MAX_LENGTH


def validate_department_name(name: Optional[str]) -> None:
    if not is_valid_department_name(name):
        raise ValidationError(
            "Department name must contain only letters and spaces "
            f"(maximum {DEPARTMENT_NAME_MAX_LENGTH} characters)"
        )
