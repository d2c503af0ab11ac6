"""Category router."""

from fastapi import APIRouter, Depends

from services.catalog import get_category_service, list_categories_service
from services.catalog_store import CatalogStore, get_catalog_store

router = APIRouter()


@router.get("")
async def list_categories(store: CatalogStore = Depends(get_catalog_store)):
    """All categories by name, each with its current video count."""
    return await list_categories_service(store)


@router.get("/{slug}")
async def get_category(slug: str, store: CatalogStore = Depends(get_catalog_store)):
    return await get_category_service(store, slug)
