"""Storage backends for videos and categories.

Both backends share one contract so the query engine and the catalog
services never care where records live. Counter increments are always a
single atomic storage operation: an ``UPDATE ... SET c = c + 1`` statement
for SQL, a lock-guarded mutation for the in-memory store.
"""

from __future__ import annotations

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
import uuid

from fastapi import Depends
from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from database import get_db
from models.category import Category
from models.video import Video
from services.errors import NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

COUNTER_FIELDS = {"views", "likes", "downloads"}
# Upper bound of the INTEGER primary key on videos.
MAX_VIDEO_ID = 2**31 - 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_id(video_id: Any) -> Optional[int]:
    try:
        pk = int(str(video_id).strip())
    except (TypeError, ValueError):
        return None
    if not 1 <= pk <= MAX_VIDEO_ID:
        return None
    return pk


def _check_counter(counter: str) -> str:
    if counter not in COUNTER_FIELDS:
        raise ValidationError(f"Unknown counter '{counter}'", field="counter")
    return counter


@dataclass
class VideoRecord:
    id: int
    title: str
    video_url: str
    thumbnail_url: str
    category: str
    uploader: str
    description: str = ""
    duration: str = "0:30"
    tags: List[str] = field(default_factory=list)
    views: int = 0
    likes: int = 0
    downloads: int = 0
    is_copyright_free: bool = True
    resolution: str = "1080p"
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass
class CategoryRecord:
    name: str
    slug: str
    icon: str = "fas fa-folder"
    color: str = "#00ffcc"
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


class CatalogStore(ABC):
    """Persistence contract for the catalog.

    ``list_videos`` returns records in storage (insertion) order.
    """

    @abstractmethod
    async def list_videos(self, category: Optional[str] = None, uploader: Optional[str] = None) -> List[Any]: ...

    @abstractmethod
    async def get_video(self, video_id: Any) -> Any: ...

    @abstractmethod
    async def view_video(self, video_id: Any) -> Any: ...

    @abstractmethod
    async def increment_counter(self, video_id: Any, counter: str) -> int: ...

    @abstractmethod
    async def insert_video(self, fields: Dict[str, Any]) -> Any: ...

    @abstractmethod
    async def count_videos(self) -> int: ...

    @abstractmethod
    async def video_totals(self) -> Tuple[int, int, int]: ...

    @abstractmethod
    async def list_categories(self) -> List[Any]: ...

    @abstractmethod
    async def get_category(self, slug: str) -> Any: ...

    @abstractmethod
    async def category_counts(self) -> Dict[str, int]: ...

    @abstractmethod
    async def upsert_category(self, fields: Dict[str, Any]) -> Any: ...


class SqlCatalogStore(CatalogStore):
    def __init__(self, db: AsyncSession):
        self._db = db

    @asynccontextmanager
    async def _guard(self, operation: str):
        try:
            yield
        except SQLAlchemyError as exc:
            logger.exception("catalog_storage_failed operation=%s", operation)
            await self._db.rollback()
            raise StorageError(f"{operation} failed") from exc

    async def list_videos(self, category: Optional[str] = None, uploader: Optional[str] = None) -> List[Video]:
        query = select(Video).order_by(Video.id)
        if category:
            query = query.where(Video.category == category)
        if uploader:
            query = query.where(Video.uploader == uploader)
        async with self._guard("list_videos"):
            result = await self._db.execute(query)
            return list(result.scalars().all())

    async def get_video(self, video_id: Any) -> Video:
        pk = _parse_id(video_id)
        if pk is None:
            raise NotFoundError("Video not found")
        async with self._guard("get_video"):
            result = await self._db.execute(select(Video).where(Video.id == pk))
            video = result.scalar_one_or_none()
        if video is None:
            raise NotFoundError("Video not found")
        return video

    async def _atomic_increment(self, pk: int, counter: str) -> Optional[int]:
        column = getattr(Video, counter)
        statement = (
            update(Video)
            .where(Video.id == pk)
            .values({counter: column + 1, "updated_at": _utcnow()})
            .returning(column)
            .execution_options(synchronize_session=False)
        )
        result = await self._db.execute(statement)
        return result.scalar_one_or_none()

    async def view_video(self, video_id: Any) -> Video:
        pk = _parse_id(video_id)
        if pk is None:
            raise NotFoundError("Video not found")
        async with self._guard("view_video"):
            views = await self._atomic_increment(pk, "views")
            if views is None:
                await self._db.rollback()
                raise NotFoundError("Video not found")
            result = await self._db.execute(
                select(Video).where(Video.id == pk).execution_options(populate_existing=True)
            )
            video = result.scalar_one()
            await self._db.commit()
        return video

    async def increment_counter(self, video_id: Any, counter: str) -> int:
        counter = _check_counter(counter)
        pk = _parse_id(video_id)
        if pk is None:
            raise NotFoundError("Video not found")
        async with self._guard("increment_counter"):
            value = await self._atomic_increment(pk, counter)
            if value is None:
                await self._db.rollback()
                raise NotFoundError("Video not found")
            await self._db.commit()
        return int(value)

    async def insert_video(self, fields: Dict[str, Any]) -> Video:
        video = Video(**fields)
        async with self._guard("insert_video"):
            self._db.add(video)
            await self._db.commit()
            await self._db.refresh(video)
        return video

    async def count_videos(self) -> int:
        async with self._guard("count_videos"):
            result = await self._db.execute(select(func.count(Video.id)))
            return int(result.scalar() or 0)

    async def video_totals(self) -> Tuple[int, int, int]:
        async with self._guard("video_totals"):
            result = await self._db.execute(
                select(
                    func.count(Video.id),
                    func.coalesce(func.sum(Video.views), 0),
                    func.coalesce(func.sum(Video.downloads), 0),
                )
            )
            count, views, downloads = result.one()
        return int(count or 0), int(views or 0), int(downloads or 0)

    async def list_categories(self) -> List[Category]:
        async with self._guard("list_categories"):
            result = await self._db.execute(select(Category).order_by(Category.name))
            return list(result.scalars().all())

    async def get_category(self, slug: str) -> Optional[Category]:
        async with self._guard("get_category"):
            result = await self._db.execute(select(Category).where(Category.slug == slug))
            return result.scalar_one_or_none()

    async def category_counts(self) -> Dict[str, int]:
        async with self._guard("category_counts"):
            result = await self._db.execute(
                select(Video.category, func.count(Video.id)).group_by(Video.category)
            )
            return {slug: int(count) for slug, count in result.all()}

    async def upsert_category(self, fields: Dict[str, Any]) -> Category:
        async with self._guard("upsert_category"):
            result = await self._db.execute(select(Category).where(Category.slug == fields["slug"]))
            category = result.scalar_one_or_none()
            if category:
                category.name = fields.get("name", category.name)
                category.icon = fields.get("icon", category.icon)
                category.color = fields.get("color", category.color)
            else:
                category = Category(**fields)
                self._db.add(category)
            await self._db.commit()
            await self._db.refresh(category)
        return category


class InMemoryCatalogStore(CatalogStore):
    """List-backed store; every read returns copies, every write holds the lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._videos: List[VideoRecord] = []
        self._categories: Dict[str, CategoryRecord] = {}
        self._ids = itertools.count(1)

    def _find(self, video_id: Any) -> VideoRecord:
        pk = _parse_id(video_id)
        for video in self._videos:
            if video.id == pk:
                return video
        raise NotFoundError("Video not found")

    async def list_videos(self, category: Optional[str] = None, uploader: Optional[str] = None) -> List[VideoRecord]:
        with self._lock:
            return [
                replace(video) for video in self._videos
                if (not category or video.category == category)
                and (not uploader or video.uploader == uploader)
            ]

    async def get_video(self, video_id: Any) -> VideoRecord:
        with self._lock:
            return replace(self._find(video_id))

    async def view_video(self, video_id: Any) -> VideoRecord:
        with self._lock:
            video = self._find(video_id)
            video.views += 1
            video.updated_at = _utcnow()
            return replace(video)

    async def increment_counter(self, video_id: Any, counter: str) -> int:
        counter = _check_counter(counter)
        with self._lock:
            video = self._find(video_id)
            value = getattr(video, counter) + 1
            setattr(video, counter, value)
            video.updated_at = _utcnow()
            return value

    async def insert_video(self, fields: Dict[str, Any]) -> VideoRecord:
        with self._lock:
            video = VideoRecord(id=next(self._ids), **fields)
            self._videos.append(video)
            return replace(video)

    async def count_videos(self) -> int:
        with self._lock:
            return len(self._videos)

    async def video_totals(self) -> Tuple[int, int, int]:
        with self._lock:
            return (
                len(self._videos),
                sum(video.views for video in self._videos),
                sum(video.downloads for video in self._videos),
            )

    async def list_categories(self) -> List[CategoryRecord]:
        with self._lock:
            return sorted((replace(category) for category in self._categories.values()), key=lambda c: c.name)

    async def get_category(self, slug: str) -> Optional[CategoryRecord]:
        with self._lock:
            category = self._categories.get(slug)
            return replace(category) if category else None

    async def category_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        with self._lock:
            for video in self._videos:
                counts[video.category] = counts.get(video.category, 0) + 1
        return counts

    async def upsert_category(self, fields: Dict[str, Any]) -> CategoryRecord:
        with self._lock:
            existing = self._categories.get(fields["slug"])
            if existing:
                for key in ("name", "icon", "color"):
                    if key in fields:
                        setattr(existing, key, fields[key])
                category = existing
            else:
                category = CategoryRecord(**fields)
                self._categories[category.slug] = category
            return replace(category)


_memory_store: Optional[InMemoryCatalogStore] = None


def get_memory_store() -> InMemoryCatalogStore:
    """Process-wide in-memory store used when CATALOG_BACKEND=memory."""
    global _memory_store
    if _memory_store is None:
        _memory_store = InMemoryCatalogStore()
    return _memory_store


async def get_catalog_store(db: AsyncSession = Depends(get_db)) -> CatalogStore:
    """FastAPI dependency resolving the configured catalog backend."""
    if settings.CATALOG_BACKEND == "memory":
        return get_memory_store()
    return SqlCatalogStore(db)
