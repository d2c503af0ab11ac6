"""Catalog services: listing, search, ranking, counters and statistics."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from config import settings
from services.catalog_query import (
    CatalogPage,
    CatalogQuery,
    safe_int,
    rank_categories,
    rank_recent,
    rank_trending,
    run_query,
    sort_videos,
)
from services.catalog_store import CatalogStore
from services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PUBLIC_COUNTERS = {"likes", "downloads"}


def _isoformat(value: Any) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_video(video: Any) -> Dict[str, Any]:
    return {
        "id": video.id,
        "title": video.title,
        "description": video.description or "",
        "videoUrl": video.video_url,
        "thumbnailUrl": video.thumbnail_url,
        "duration": video.duration,
        "category": video.category,
        "tags": list(video.tags or []),
        "uploader": video.uploader,
        "views": int(video.views or 0),
        "likes": int(video.likes or 0),
        "downloads": int(video.downloads or 0),
        "isCopyrightFree": bool(video.is_copyright_free),
        "resolution": video.resolution,
        "createdAt": _isoformat(video.created_at),
        "updatedAt": _isoformat(video.updated_at),
    }


def serialize_category(category: Any, video_count: int = 0) -> Dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "icon": category.icon,
        "color": category.color,
        "videoCount": int(video_count),
    }


def _limit(value: Any, default: int) -> int:
    limit = safe_int(value, default)
    if limit <= 0:
        limit = default
    return min(limit, max(int(settings.MAX_PAGE_SIZE), 1))


def _build_query(**params: Any) -> CatalogQuery:
    return CatalogQuery.from_params(
        default_page_size=settings.DEFAULT_PAGE_SIZE,
        max_page_size=settings.MAX_PAGE_SIZE,
        **params,
    )


def _page_payload(page: CatalogPage) -> Dict[str, Any]:
    return {
        "videos": [serialize_video(video) for video in page.items],
        "totalPages": page.total_pages,
        "currentPage": page.current_page,
        "total": page.total,
        "hasNextPage": page.has_next_page,
        "hasPrevPage": page.has_prev_page,
    }


async def list_videos_service(
    store: CatalogStore,
    *,
    category: Any = None,
    search: Any = None,
    sort_by: Any = None,
    sort_order: Any = None,
    page: Any = None,
    limit: Any = None,
) -> Dict[str, Any]:
    query = _build_query(
        category=category,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    videos = await store.list_videos(category=query.category)
    result = run_query(videos, query)
    logger.info("catalog_list_run fingerprint=%s total=%s", query.fingerprint, result.total)
    return _page_payload(result)


async def search_videos_service(
    store: CatalogStore,
    *,
    q: Any = None,
    category: Any = None,
    page: Any = None,
    limit: Any = None,
) -> Dict[str, Any]:
    """Free-text search ordered by views, most viewed first."""
    query = _build_query(category=category, search=q, sort_by="views", sort_order="desc", page=page, limit=limit)
    videos = await store.list_videos(category=query.category)
    result = run_query(videos, query)
    logger.info("catalog_search_run fingerprint=%s total=%s", query.fingerprint, result.total)
    return {
        "videos": [serialize_video(video) for video in result.items],
        "total": result.total,
        "totalPages": result.total_pages,
        "currentPage": result.current_page,
    }


async def uploader_videos_service(
    store: CatalogStore,
    *,
    username: str,
    page: Any = None,
    limit: Any = None,
) -> Dict[str, Any]:
    query = _build_query(sort_by="createdAt", sort_order="desc", page=page, limit=limit)
    videos = await store.list_videos(uploader=username)
    result = run_query(videos, query)
    return {
        "videos": [serialize_video(video) for video in result.items],
        "totalPages": result.total_pages,
        "currentPage": result.current_page,
        "total": result.total,
    }


async def get_video_service(store: CatalogStore, video_id: Any) -> Dict[str, Any]:
    """Fetch one video and count the view.

    The fetch and the view increment succeed or fail together.
    """
    video = await store.view_video(video_id)
    logger.info("catalog_video_viewed video=%s views=%s", video.id, video.views)
    return serialize_video(video)


async def increment_counter_service(store: CatalogStore, video_id: Any, counter: str) -> Dict[str, Any]:
    if counter not in PUBLIC_COUNTERS:
        raise ValidationError(f"Unknown counter '{counter}'", field="counter")
    value = await store.increment_counter(video_id, counter)
    logger.info("catalog_counter_incremented video=%s counter=%s value=%s", video_id, counter, value)
    payload: Dict[str, Any] = {counter: value, "videoId": safe_int(video_id, 0)}
    if counter == "downloads":
        video = await store.get_video(video_id)
        payload["downloadUrl"] = video.video_url
    return payload


async def trending_service(store: CatalogStore, limit: Any = None) -> List[Dict[str, Any]]:
    videos = await store.list_videos()
    ranked = rank_trending(videos, _limit(limit, settings.TRENDING_LIMIT))
    return [serialize_video(video) for video in ranked]


async def recent_service(store: CatalogStore, limit: Any = None) -> List[Dict[str, Any]]:
    videos = await store.list_videos()
    ranked = rank_recent(videos, _limit(limit, settings.RECENT_LIMIT))
    return [serialize_video(video) for video in ranked]


async def list_categories_service(store: CatalogStore) -> List[Dict[str, Any]]:
    categories = await store.list_categories()
    counts = await store.category_counts()
    return [serialize_category(category, counts.get(category.slug, 0)) for category in categories]


async def get_category_service(store: CatalogStore, slug: str) -> Dict[str, Any]:
    category = await store.get_category(slug)
    if category is None:
        raise NotFoundError("Category not found")
    videos = await store.list_videos(category=slug)
    top = sort_videos(videos, "views", "desc")[:max(int(settings.CATEGORY_VIDEOS_LIMIT), 0)]
    return {
        "category": serialize_category(category, len(videos)),
        "videos": [serialize_video(video) for video in top],
    }


async def stats_service(store: CatalogStore, *, total_users: int) -> Dict[str, Any]:
    total_videos, total_views, total_downloads = await store.video_totals()
    categories = await store.list_categories()
    counts = await store.category_counts()
    top = rank_categories(categories, counts, settings.TOP_CATEGORIES_LIMIT)
    return {
        "totalVideos": total_videos,
        "totalViews": total_views,
        "totalDownloads": total_downloads,
        "totalUsers": int(total_users),
        "topCategories": [serialize_category(category, count) for category, count in top],
    }


def parse_tags(raw: Optional[str]) -> List[str]:
    return [tag.strip() for tag in (raw or "").split(",") if tag.strip()]


async def validate_new_video(store: CatalogStore, *, title: Any, category: Any) -> None:
    """Reject a video before any media is stored for it."""
    if not str(title or "").strip():
        raise ValidationError("Title is required", field="title")
    slug = str(category or "").strip()
    if not slug:
        raise ValidationError("Category is required", field="category")
    if await store.get_category(slug) is None:
        raise ValidationError(f"Unknown category '{slug}'", field="category")


async def create_video_service(store: CatalogStore, fields: Dict[str, Any]) -> Dict[str, Any]:
    await validate_new_video(store, title=fields.get("title"), category=fields.get("category"))
    if not str(fields.get("uploader") or "").strip():
        raise ValidationError("Uploader is required", field="uploader")

    record = {
        "title": str(fields["title"]).strip(),
        "description": fields.get("description") or "",
        "video_url": fields["video_url"],
        "thumbnail_url": fields.get("thumbnail_url") or settings.DEFAULT_THUMBNAIL_URL,
        "duration": fields.get("duration") or "0:30",
        "category": str(fields["category"]).strip(),
        "tags": list(fields.get("tags") or []),
        "uploader": fields["uploader"],
        "resolution": fields.get("resolution") or "1080p",
        "is_copyright_free": True,
    }
    video = await store.insert_video(record)
    logger.info("catalog_video_created video=%s category=%s uploader=%s", video.id, video.category, video.uploader)
    return serialize_video(video)
