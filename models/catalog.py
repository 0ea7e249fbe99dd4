from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class Department(BaseModel):
    """A department that raises purchase requests."""
    id: Optional[str] = None
    name: str
    active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class UnitOfMeasure(BaseModel):
    """A unit articles are counted in, e.g. "Unidad", "Caja", "Kg"."""
    id: Optional[str] = None
    description: str
    active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Article(BaseModel):
    """
    An article that can be purchased.
    unit_of_measure is only populated when the query embeds units_of_measure.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    description: str
    brand: Optional[str] = None
    unit_of_measure_id: str
    stock: float = 0
    active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    unit_of_measure: Optional[UnitOfMeasure] = Field(default=None, alias="units_of_measure")
