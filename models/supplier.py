from pydantic import BaseModel
from typing import Optional

from purchasing.fiscal_id import format_fiscal_id, normalise_fiscal_id


class Supplier(BaseModel):
    """
    A supplier from the supplier master list.
    tax_id is the personal (11-digit) or business (9-digit) fiscal identifier.
    """
    id: Optional[str] = None
    tax_id: str
    display_name: str
    active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def tax_id_normalised(self) -> str:
        """Return the tax id as digits only."""
        return normalise_fiscal_id(self.tax_id)

    @property
    def tax_id_display(self) -> str:
        """Return the tax id in its hyphenated display form."""
        return format_fiscal_id(self.tax_id)
