"""
Material API Endpoints

Read-only access to the material reference data shown in the
Filament Finder's info panel.
"""
from fastapi import APIRouter, Depends

from app.db.catalog_store import CatalogStore, get_catalog_store
from app.exceptions import MaterialNotFoundError
from app.schemas.catalog import Material
from app.schemas.filament import MaterialListResponse
from app.services.filament_filter import find_material


router = APIRouter()


@router.get("", response_model=MaterialListResponse)
def list_materials(store: CatalogStore = Depends(get_catalog_store)):
    """All materials, in catalog order"""
    return MaterialListResponse(materials=store.load().materials)


@router.get("/{name}", response_model=Material)
def get_material(name: str, store: CatalogStore = Depends(get_catalog_store)):
    """
    Look up a material by its exact name (e.g. 'PLA', 'PETG-CF').

    Called when the user selects a material to fill the info panel.
    """
    material = find_material(store.load().materials, name)
    if material is None:
        raise MaterialNotFoundError(f"Material not found: {name}")
    return material
