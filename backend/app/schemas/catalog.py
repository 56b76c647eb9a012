"""
Catalog Pydantic Schemas

Shapes of the records stored in the filament catalog document:
- Material: reference data describing a base material (PLA, PETG, ...)
- Filament: a specific product (brand + product name) of some material
- CatalogDocument: the persisted root, {"materials": [...], "filaments": [...]}

Unknown keys are kept (extra="allow") so that fields added by hand to the
JSON file survive a rewrite by the service.
"""
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# JSON numbers; integral temperatures are stored as int
Temperature = Union[int, float]


# ============================================================================
# Material
# ============================================================================

class Material(BaseModel):
    """Typical behavior of a material type, not a specific brand"""
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Unique display key, e.g. 'PLA'")
    description: str = ""
    nozzle_temp_min: Optional[Temperature] = None
    nozzle_temp_max: Optional[Temperature] = None
    bed_temp_min: Optional[Temperature] = None
    bed_temp_max: Optional[Temperature] = None
    needs_enclosure: bool = False
    is_flexible: bool = False
    notes: str = ""


# ============================================================================
# Filament
# ============================================================================

class Filament(BaseModel):
    """A concrete filament product"""
    model_config = ConfigDict(extra="allow")

    id: int
    brand: str
    product_name: str
    material: str = Field(..., description="Name of a Material (not enforced)")
    color: Optional[str] = None
    nozzle_temp_min: Optional[Temperature] = None
    nozzle_temp_max: Optional[Temperature] = None
    bed_temp_min: Optional[Temperature] = None
    bed_temp_max: Optional[Temperature] = None
    special_type: Optional[str] = None
    notes: Optional[str] = ""


# ============================================================================
# Document
# ============================================================================

class CatalogDocument(BaseModel):
    """Root of the persisted catalog"""
    model_config = ConfigDict(extra="allow")

    materials: List[Material] = Field(default_factory=list)
    filaments: List[Filament] = Field(default_factory=list)

    @field_validator("materials", "filaments", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        """A hand-edited null collection loads as empty"""
        return [] if v is None else v
