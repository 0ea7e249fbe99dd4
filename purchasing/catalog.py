"""
Validated writes to the supplier and department master lists.

Each save runs the same checks as the catalog screens and raises
ValidationError before anything reaches the store.  Supplier tax ids are
stored as digits only; names are trimmed.
"""
import logging
from typing import Any, Optional

from models.catalog import Department
from models.supplier import Supplier
from .errors import RemoteRequestError, ValidationError
from .fiscal_id import normalise_fiscal_id
from .store import TABLE_DEPARTMENTS, TABLE_SUPPLIERS
from .validator import validate_department_name, validate_supplier

logger = logging.getLogger(__name__)


class CatalogService:
    """
    Saves suppliers and departments through the table store.

    Usage:
        catalog = CatalogService(store)
        supplier = catalog.add_supplier("131-23456-9", "Tech Supplies SRL")
    """

    def __init__(self, store: Any) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # Suppliers
    # ------------------------------------------------------------------

    def add_supplier(self, tax_id: str, display_name: str, active: bool = True) -> Supplier:
        validate_supplier(tax_id, display_name)
        row = self._write(lambda: self.store.insert(TABLE_SUPPLIERS, {
            "tax_id":       normalise_fiscal_id(tax_id),
            "display_name": display_name.strip(),
            "active":       active,
        }), "supplier", display_name)
        supplier = Supplier.model_validate(row)
        logger.info("Supplier added: %s (%s)", supplier.display_name, supplier.tax_id_display)
        return supplier

    def update_supplier(
        self,
        supplier_id: str,
        tax_id: Optional[str] = None,
        display_name: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> Supplier:
        """Change the given fields; the merged record is validated as a whole."""
        current = self._require(TABLE_SUPPLIERS, supplier_id, "Supplier")
        tax_id = tax_id if tax_id is not None else current["tax_id"]
        display_name = display_name if display_name is not None else current["display_name"]
        validate_supplier(tax_id, display_name)

        changes = {"tax_id": normalise_fiscal_id(tax_id), "display_name": display_name.strip()}
        if active is not None:
            changes["active"] = active
        row = self._write(
            lambda: self.store.update(TABLE_SUPPLIERS, supplier_id, changes), "supplier", supplier_id
        )
        if row is None:
            raise ValidationError(f"Supplier {supplier_id} does not exist")
        return Supplier.model_validate(row)

    def suppliers(self, active_only: bool = False) -> list[Supplier]:
        rows = self.store.select(TABLE_SUPPLIERS, order="display_name.asc")
        listed = [Supplier.model_validate(r) for r in rows]
        return [s for s in listed if s.active] if active_only else listed

    # ------------------------------------------------------------------
    # Departments
    # ------------------------------------------------------------------

    def add_department(self, name: str, active: bool = True) -> Department:
        validate_department_name(name)
        row = self._write(
            lambda: self.store.insert(TABLE_DEPARTMENTS, {"name": name.strip(), "active": active}),
            "department", name,
        )
        department = Department.model_validate(row)
        logger.info("Department added: %s", department.name)
        return department

    def update_department(
        self,
        department_id: str,
        name: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> Department:
        current = self._require(TABLE_DEPARTMENTS, department_id, "Department")
        name = name if name is not None else current["name"]
        validate_department_name(name)

        changes = {"name": name.strip()}
        if active is not None:
            changes["active"] = active
        row = self._write(
            lambda: self.store.update(TABLE_DEPARTMENTS, department_id, changes), "department", department_id
        )
        if row is None:
            raise ValidationError(f"Department {department_id} does not exist")
        return Department.model_validate(row)

    def departments(self, active_only: bool = False) -> list[Department]:
        rows = self.store.select(TABLE_DEPARTMENTS, order="name.asc")
        listed = [Department.model_validate(r) for r in rows]
        return [d for d in listed if d.active] if active_only else listed

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require(self, table: str, record_id: str, label: str) -> dict:
        row = self.store.get(table, record_id)
        if row is None:
            raise ValidationError(f"{label} {record_id} does not exist")
        return row

    @staticmethod
    def _write(call, kind: str, ref: str):
        try:
            return call()
        except RemoteRequestError as exc:
            logger.error("Saving %s %s failed: %s", kind, ref, exc)
            raise
