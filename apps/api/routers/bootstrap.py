"""Catalog bootstrap endpoint."""

from fastapi import APIRouter, Depends

from services.catalog_store import CatalogStore, get_catalog_store
from services.seed import seed_default_data

router = APIRouter()


@router.post("/init")
async def initialize_catalog(store: CatalogStore = Depends(get_catalog_store)):
    """Load default categories and, for an empty catalog, sample videos."""
    seeded = await seed_default_data(store)
    return {"message": "Database initialized with default data", **seeded}
