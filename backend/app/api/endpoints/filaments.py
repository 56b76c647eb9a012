"""
Filament API Endpoints

Filament Finder lookups and the "add filament" write path.
"""
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from app.core.config import settings
from app.db.catalog_store import CatalogStore, get_catalog_store
from app.logging_config import get_client_ip
from app.schemas.filament import (
    FilamentCreateResponse,
    FilamentListResponse,
    FilterOptionsResponse,
)
from app.services.filament_filter import FilamentFilter, filter_filaments, filter_options
from app.services.filament_service import create_filament


router = APIRouter()


@router.get("", response_model=FilamentListResponse)
def list_filaments(
    material: Optional[str] = None,
    brand: Optional[str] = None,
    color: Optional[str] = None,
    # Kept as strings: a non-numeric temperature disables the filter instead of failing
    nozzle_temp: Optional[str] = Query(None, description="Nozzle temperature in °C"),
    bed_temp: Optional[str] = Query(None, description="Bed temperature in °C"),
    store: CatalogStore = Depends(get_catalog_store),
):
    """
    List filaments matching all given filters.

    - material / brand / color: exact match
    - nozzle_temp / bed_temp: must lie inside the filament's min-max range
      (inclusive); ignored when not a number
    """
    document = store.load()
    criteria = FilamentFilter(
        material=material,
        brand=brand,
        color=color,
        nozzle_temp=nozzle_temp,
        bed_temp=bed_temp,
    )
    filaments = filter_filaments(document.filaments, criteria)
    return FilamentListResponse(count=len(filaments), filaments=filaments)


@router.get("/options", response_model=FilterOptionsResponse)
def get_filter_options(store: CatalogStore = Depends(get_catalog_store)):
    """Materials, brands and colors for the filter dropdowns"""
    return FilterOptionsResponse(**filter_options(store.load()))


@router.post("", response_model=FilamentCreateResponse, status_code=201)
def add_filament(
    request: Request,
    payload: Any = Body(None),
    store: CatalogStore = Depends(get_catalog_store),
):
    """
    Add a filament to the catalog.

    Required: brand, product_name, material (non-empty) and
    nozzle_temp_min, nozzle_temp_max, bed_temp_min, bed_temp_max (numbers).
    Optional: color, special_type, notes.

    The new id is one more than the highest existing id.
    """
    filament = create_filament(
        store,
        payload,
        enforce_material_reference=settings.ENFORCE_MATERIAL_REFERENCE,
        ip_address=get_client_ip(request),
    )
    return FilamentCreateResponse(filament=filament)
