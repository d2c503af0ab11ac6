"""
Video router: listing, detail, upload and engagement counters.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from models.user import User
from routers.auth_scope import get_current_user
from routers.rate_limit import rate_limit
from services.catalog import (
    create_video_service,
    get_video_service,
    increment_counter_service,
    list_videos_service,
    parse_tags,
    uploader_videos_service,
    validate_new_video,
)
from services.catalog_store import CatalogStore, get_catalog_store
from services.errors import CatalogError, ValidationError
from services.media_store import discard_upload, store_upload

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_videos(
    category: Optional[str] = None,
    search: Optional[str] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    store: CatalogStore = Depends(get_catalog_store),
):
    """List videos with category filter, free-text search, sort and pagination."""
    return await list_videos_service(
        store,
        category=category,
        search=search,
        sort_by=sortBy,
        sort_order=sortOrder,
        page=page,
        limit=limit,
    )


@router.post("/upload", status_code=201)
async def upload_video(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    duration: Optional[str] = Form(None),
    resolution: Optional[str] = Form(None),
    video: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
    _rate_limit: None = Depends(rate_limit("video_upload", limit=30, window_seconds=3600)),
    user: User = Depends(get_current_user),
    store: CatalogStore = Depends(get_catalog_store),
):
    """Store the media files, then create the video record."""
    await validate_new_video(store, title=title, category=category)
    if video is None:
        raise ValidationError("Video file is required", field="video")

    video_url = await store_upload(video, kind="video")
    thumbnail_url = None
    try:
        if thumbnail is not None:
            thumbnail_url = await store_upload(thumbnail, kind="thumbnail")
        created = await create_video_service(
            store,
            {
                "title": title,
                "description": description,
                "category": category,
                "tags": parse_tags(tags),
                "duration": duration,
                "resolution": resolution,
                "uploader": user.username,
                "video_url": video_url,
                "thumbnail_url": thumbnail_url,
            },
        )
    except CatalogError:
        discard_upload(video_url)
        if thumbnail_url:
            discard_upload(thumbnail_url)
        raise

    return {"message": "Video uploaded successfully", "video": created}


@router.get("/user/{username}")
async def list_uploader_videos(
    username: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    store: CatalogStore = Depends(get_catalog_store),
):
    return await uploader_videos_service(store, username=username, page=page, limit=limit)


@router.get("/{video_id}")
async def get_video(video_id: str, store: CatalogStore = Depends(get_catalog_store)):
    """Single video; counts one view."""
    return await get_video_service(store, video_id)


@router.post("/{video_id}/like")
async def like_video(
    video_id: str,
    _rate_limit: None = Depends(rate_limit("video_like", limit=300, window_seconds=3600)),
    store: CatalogStore = Depends(get_catalog_store),
):
    payload = await increment_counter_service(store, video_id, "likes")
    return {"message": "Video liked successfully", **payload}


@router.post("/{video_id}/download")
async def download_video(
    video_id: str,
    _rate_limit: None = Depends(rate_limit("video_download", limit=300, window_seconds=3600)),
    store: CatalogStore = Depends(get_catalog_store),
):
    payload = await increment_counter_service(store, video_id, "downloads")
    return {"message": "Download ready", **payload}
