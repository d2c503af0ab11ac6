"""
Discovery router: trending, recent, search and platform statistics.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from services.accounts import count_users_service
from services.catalog import (
    recent_service,
    search_videos_service,
    stats_service,
    trending_service,
)
from services.catalog_store import CatalogStore, get_catalog_store

router = APIRouter()


@router.get("/trending")
async def trending(limit: Optional[str] = None, store: CatalogStore = Depends(get_catalog_store)):
    """Most viewed videos, likes breaking ties."""
    return await trending_service(store, limit)


@router.get("/recent")
async def recent(limit: Optional[str] = None, store: CatalogStore = Depends(get_catalog_store)):
    return await recent_service(store, limit)


@router.get("/search")
async def search(
    q: Optional[str] = None,
    category: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    store: CatalogStore = Depends(get_catalog_store),
):
    return await search_videos_service(store, q=q, category=category, page=page, limit=limit)


@router.get("/stats")
async def stats(
    store: CatalogStore = Depends(get_catalog_store),
    db: AsyncSession = Depends(get_db),
):
    """Catalog totals plus the largest categories."""
    total_users = await count_users_service(db)
    return await stats_service(store, total_users=total_users)
