"""
API Router - Filament Finder
"""
from fastapi import APIRouter
from app.api.endpoints import filaments, materials

router = APIRouter()

# Filaments (filter + add)
router.include_router(
    filaments.router,
    prefix="/filaments",
    tags=["filaments"]
)

# Materials (info panel)
router.include_router(
    materials.router,
    prefix="/materials",
    tags=["materials"]
)
