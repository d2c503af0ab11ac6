"""Catalog query engine: filtering, search, sorting, pagination and ranking.

Everything here is pure and works on any sequence of video-like records
(ORM rows or in-memory records) exposing ``title``, ``description``,
``category``, ``tags``, ``views``, ``likes``, ``downloads`` and
``created_at``. Input sequences are expected in storage order; every sort
is stable so equal keys keep that order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

ALL_CATEGORIES = "all"
SORT_FIELDS = {
    "createdAt": "created_at",
    "created_at": "created_at",
    "views": "views",
    "likes": "likes",
    "downloads": "downloads",
    "title": "title",
}
DEFAULT_SORT_FIELD = "created_at"
DEFAULT_SORT_ORDER = "desc"


def safe_int(value: Any, default: int) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def _normalize_text(value: Any) -> str:
    return str(value or "").strip()


def _timestamp(value: Optional[datetime]) -> float:
    return value.timestamp() if value else 0.0


@dataclass(frozen=True)
class CatalogQuery:
    category: Optional[str] = None
    search: Optional[str] = None
    sort_by: str = DEFAULT_SORT_FIELD
    sort_order: str = DEFAULT_SORT_ORDER
    page: int = 1
    page_size: int = 12

    @classmethod
    def from_params(
        cls,
        *,
        category: Any = None,
        search: Any = None,
        sort_by: Any = None,
        sort_order: Any = None,
        page: Any = None,
        limit: Any = None,
        default_page_size: int = 12,
        max_page_size: int = 100,
    ) -> "CatalogQuery":
        """Build a query from raw request parameters, clamping bad values."""
        category_value = _normalize_text(category)
        if category_value == ALL_CATEGORIES:
            category_value = ""

        resolved_sort = SORT_FIELDS.get(_normalize_text(sort_by), DEFAULT_SORT_FIELD)
        order = _normalize_text(sort_order).lower()
        if order not in {"asc", "desc"}:
            order = DEFAULT_SORT_ORDER

        resolved_page = max(safe_int(page, 1), 1)
        page_size = safe_int(limit, default_page_size)
        if page_size <= 0:
            page_size = default_page_size
        page_size = max(1, min(page_size, max_page_size))

        return cls(
            category=category_value or None,
            search=_normalize_text(search) or None,
            sort_by=resolved_sort,
            sort_order=order,
            page=resolved_page,
            page_size=page_size,
        )

    @property
    def fingerprint(self) -> Tuple[Optional[str], Optional[str], str, str, int, int]:
        return (self.category, self.search, self.sort_by, self.sort_order, self.page, self.page_size)


@dataclass
class CatalogPage:
    items: List[Any] = field(default_factory=list)
    total: int = 0
    total_pages: int = 0
    current_page: int = 1
    page_size: int = 12

    @property
    def has_next_page(self) -> bool:
        return self.current_page * self.page_size < self.total

    @property
    def has_prev_page(self) -> bool:
        return self.current_page > 1


def matches_category(video: Any, category: Optional[str]) -> bool:
    if not category or category == ALL_CATEGORIES:
        return True
    return video.category == category


def matches_search(video: Any, search: Optional[str]) -> bool:
    """Case-insensitive substring match on title, description or any tag.

    This is plain substring matching, not tokenized or ranked search.
    """
    term = _normalize_text(search).lower()
    if not term:
        return True
    if term in _normalize_text(video.title).lower():
        return True
    if term in _normalize_text(video.description).lower():
        return True
    return any(term in _normalize_text(tag).lower() for tag in (video.tags or []))


def filter_videos(videos: Sequence[Any], category: Optional[str] = None, search: Optional[str] = None) -> List[Any]:
    return [
        video for video in videos
        if matches_category(video, category) and matches_search(video, search)
    ]


def _sort_key(sort_by: str):
    if sort_by in {"views", "likes", "downloads"}:
        return lambda video: int(getattr(video, sort_by) or 0)
    if sort_by == "title":
        return lambda video: _normalize_text(video.title).lower()
    return lambda video: _timestamp(video.created_at)


def sort_videos(videos: Sequence[Any], sort_by: str = DEFAULT_SORT_FIELD, sort_order: str = DEFAULT_SORT_ORDER) -> List[Any]:
    resolved_sort = SORT_FIELDS.get(sort_by, DEFAULT_SORT_FIELD)
    # sorted() keeps equal elements in input order even with reverse=True.
    return sorted(videos, key=_sort_key(resolved_sort), reverse=sort_order != "asc")


def paginate(videos: Sequence[Any], page: int, page_size: int) -> CatalogPage:
    page = max(int(page), 1)
    page_size = max(int(page_size), 1)
    total = len(videos)
    start = (page - 1) * page_size
    return CatalogPage(
        items=list(videos[start:start + page_size]),
        total=total,
        total_pages=math.ceil(total / page_size),
        current_page=page,
        page_size=page_size,
    )


def run_query(videos: Sequence[Any], query: CatalogQuery) -> CatalogPage:
    """Apply filter, search, sort and pagination in that order."""
    matched = filter_videos(videos, query.category, query.search)
    ordered = sort_videos(matched, query.sort_by, query.sort_order)
    return paginate(ordered, query.page, query.page_size)


def rank_trending(videos: Sequence[Any], limit: int) -> List[Any]:
    """Most viewed first, then most liked, then storage order."""
    ranked = sorted(
        videos,
        key=lambda video: (int(video.views or 0), int(video.likes or 0)),
        reverse=True,
    )
    return ranked[:max(int(limit), 0)]


def rank_recent(videos: Sequence[Any], limit: int) -> List[Any]:
    ranked = sort_videos(videos, DEFAULT_SORT_FIELD, "desc")
    return ranked[:max(int(limit), 0)]


def rank_categories(categories: Sequence[Any], counts: Dict[str, int], limit: int) -> List[Tuple[Any, int]]:
    """Pair categories with their video counts, largest first.

    Ties keep the order of ``categories``.
    """
    paired = [(category, int(counts.get(category.slug, 0))) for category in categories]
    ranked = sorted(paired, key=lambda item: item[1], reverse=True)
    return ranked[:max(int(limit), 0)]
