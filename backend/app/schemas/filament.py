"""
Filament API Pydantic Schemas

Request and response bodies for the /api/filaments and /api/materials
endpoints.
"""
import math
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_core import PydanticCustomError

from app.schemas.catalog import Filament, Material, Temperature


REQUIRED_STRING_FIELDS = ("brand", "product_name", "material")
TEMPERATURE_FIELDS = ("nozzle_temp_min", "nozzle_temp_max", "bed_temp_min", "bed_temp_max")


def clean_string(value: Any) -> Optional[str]:
    """Trimmed string, or None for missing/blank/non-string values"""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def parse_number(value: Any) -> Optional[Temperature]:
    """
    Parse a temperature submitted by a client.

    Accepts ints, floats and numeric strings. Integral values come back as
    int. Returns None for anything that is not a finite number (including
    booleans, blanks, missing values and digit separators like "1_000").
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        if "_" in value:
            return None
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None

    if isinstance(number, float):
        if not math.isfinite(number):
            return None
        if number.is_integer():
            return int(number)
    return number


# ============================================================================
# Append
# ============================================================================

class FilamentCreate(BaseModel):
    """
    A candidate filament built from a raw request body.

    Validation order:
    1. brand, product_name and material must be non-empty strings. All
       missing ones are reported together.
    2. Temperatures are checked in TEMPERATURE_FIELDS order; the first one
       that is not a number is reported.

    Errors carry a "fields" list in their context.
    """
    brand: str = Field(..., min_length=1)
    product_name: str = Field(..., min_length=1)
    material: str = Field(..., min_length=1)
    color: Optional[str] = None
    nozzle_temp_min: Temperature
    nozzle_temp_max: Temperature
    bed_temp_min: Temperature
    bed_temp_max: Temperature
    special_type: Optional[str] = None
    notes: str = ""

    @model_validator(mode="before")
    @classmethod
    def check_required_then_temperatures(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            raise PydanticCustomError("invalid_body", "Request body must be a JSON object")
        data = dict(data)

        missing = []
        for field in REQUIRED_STRING_FIELDS:
            data[field] = clean_string(data.get(field))
            if data[field] is None:
                missing.append(field)
        if missing:
            raise PydanticCustomError(
                "missing_fields",
                "Missing required fields: {names}",
                {"names": ", ".join(missing), "fields": missing},
            )

        for field in TEMPERATURE_FIELDS:
            number = parse_number(data.get(field))
            if number is None:
                raise PydanticCustomError(
                    "not_a_number",
                    "Field {field} must be a number",
                    {"field": field, "fields": [field]},
                )
            data[field] = number
        return data

    @field_validator("color", "special_type", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Optional[str]:
        return clean_string(v)

    @field_validator("notes", mode="before")
    @classmethod
    def trim_notes(cls, v: Any) -> str:
        return v.strip() if isinstance(v, str) else ""

    def to_filament(self, filament_id: int) -> Filament:
        """Attach an id, producing the record that gets persisted"""
        return Filament(id=filament_id, **self.model_dump())


class FilamentCreateResponse(BaseModel):
    """Response for a successful append"""
    success: bool = True
    filament: Filament


# ============================================================================
# Lookup / filter
# ============================================================================

class FilamentListResponse(BaseModel):
    """Filtered filament list"""
    count: int
    filaments: List[Filament]


class FilterOptionsResponse(BaseModel):
    """Values used to populate the filter dropdowns"""
    materials: List[str]
    brands: List[str]
    colors: List[str]


class MaterialListResponse(BaseModel):
    """All materials in the catalog"""
    materials: List[Material]
