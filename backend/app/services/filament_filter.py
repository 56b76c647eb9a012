"""
Filament Filter Service

Pure functions behind the Filament Finder view: narrowing the filament list
by the active filters, looking up the selected material, and collecting the
values offered in the filter dropdowns.

Nothing here touches storage; callers pass in collections they loaded.
"""
import math
import re
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict

from app.schemas.catalog import CatalogDocument, Filament, Material


# Query temperatures outside this range are ignored rather than rejected
TEMPERATURE_QUERY_MIN = 0
TEMPERATURE_QUERY_MAX = 500

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class FilamentFilter(BaseModel):
    """
    Active filter values. None or "" means no constraint.

    Temperatures may be given raw (e.g. straight from a query string); they
    are parsed with parse_temperature when the filter is applied.
    """
    model_config = ConfigDict(frozen=True)

    material: Optional[str] = None
    brand: Optional[str] = None
    color: Optional[str] = None
    nozzle_temp: Any = None
    bed_temp: Any = None


def parse_temperature(value: Any) -> Optional[int]:
    """
    Turn a user supplied temperature into an int, or None to skip the filter.

    Accepts ints and strings starting with an integer ("215", " 215 ",
    "215C"). Floats are truncated. Booleans, empty or non-numeric values
    and anything outside TEMPERATURE_QUERY_MIN..TEMPERATURE_QUERY_MAX give
    None.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return None
        parsed = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        if not match:
            return None
        parsed = int(match.group(1))
    else:
        return None

    if not TEMPERATURE_QUERY_MIN <= parsed <= TEMPERATURE_QUERY_MAX:
        return None
    return parsed


def _in_range(low: Any, high: Any, value: int) -> bool:
    # A filament without a bound never matches an active temperature filter
    if low is None or high is None:
        return False
    return low <= value <= high


def filter_filaments(filaments: Iterable[Filament], criteria: FilamentFilter) -> List[Filament]:
    """
    Return the filaments matching every supplied filter, in original order.

    Args:
        filaments: Full filament collection
        criteria: Active filter values

    Returns:
        The ordered subsequence of filaments that satisfy all predicates.
        With no active predicates this is the whole collection. An empty list
        is a valid result.
    """
    nozzle_temp = parse_temperature(criteria.nozzle_temp)
    bed_temp = parse_temperature(criteria.bed_temp)

    result = []
    for f in filaments:
        if criteria.material and f.material != criteria.material:
            continue
        if criteria.brand and f.brand != criteria.brand:
            continue
        if criteria.color and f.color != criteria.color:
            continue
        if nozzle_temp is not None and not _in_range(f.nozzle_temp_min, f.nozzle_temp_max, nozzle_temp):
            continue
        if bed_temp is not None and not _in_range(f.bed_temp_min, f.bed_temp_max, bed_temp):
            continue
        result.append(f)
    return result


def find_material(materials: Iterable[Material], name: Optional[str]) -> Optional[Material]:
    """Exact-name material lookup; None when nothing is selected or found"""
    if not name:
        return None
    return next((m for m in materials if m.name == name), None)


def filter_options(document: CatalogDocument) -> dict:
    """
    Values for the filter dropdowns

    Returns:
        {
            "materials": material names in document order,
            "brands": sorted unique brands,
            "colors": sorted unique colors (filaments without one are skipped),
        }
    """
    return {
        "materials": [m.name for m in document.materials],
        "brands": sorted({f.brand for f in document.filaments}),
        "colors": sorted({f.color for f in document.filaments if f.color}),
    }
