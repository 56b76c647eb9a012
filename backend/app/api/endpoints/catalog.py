"""
Catalog data endpoint

Serves the raw catalog document the browser loads to populate the filter
and add-filament forms.
"""
from fastapi import APIRouter, Depends, Response

from app.db.catalog_store import CatalogStore, get_catalog_store


router = APIRouter()


@router.get("/data/filaments.json")
def get_catalog_document(store: CatalogStore = Depends(get_catalog_store)):
    """The catalog document, byte for byte as stored"""
    return Response(content=store.read_raw(), media_type="application/json")
