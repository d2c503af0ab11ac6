"""Default categories and sample videos loaded on first start."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from services.catalog_store import CatalogStore

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: List[Dict[str, str]] = [
    {"name": "Sports Edits", "slug": "sports", "icon": "fas fa-basketball-ball", "color": "#00ffcc"},
    {"name": "Anime Edits", "slug": "anime", "icon": "fas fa-robot", "color": "#ff00aa"},
    {"name": "Movie Edits", "slug": "movie", "icon": "fas fa-film", "color": "#ff5e00"},
    {"name": "Slow-Mo Edits", "slug": "slowmo", "icon": "fas fa-hourglass-half", "color": "#00ff88"},
    {"name": "Aesthetic Edits", "slug": "aesthetic", "icon": "fas fa-palette", "color": "#9d00ff"},
    {"name": "Love Edits", "slug": "love", "icon": "fas fa-heart", "color": "#ff4d6d"},
    {"name": "Action Edits", "slug": "action", "icon": "fas fa-fist-raised", "color": "#ff0000"},
    {"name": "Music Videos", "slug": "music", "icon": "fas fa-music", "color": "#ffcc00"},
]

SAMPLE_VIDEOS: List[Dict[str, Any]] = [
    {
        "title": "Epic Soccer Goals Compilation",
        "description": "Amazing soccer goals from top leagues around the world. Perfect for sports highlights and montages.",
        "video_url": "/uploads/sample-soccer.mp4",
        "thumbnail_url": "/uploads/thumbnail-soccer.jpg",
        "duration": "0:45",
        "category": "sports",
        "uploader": "SoccerEdits",
        "views": 12500,
        "likes": 842,
        "downloads": 1560,
        "tags": ["soccer", "goals", "sports", "football", "highlights"],
    },
    {
        "title": "Anime AMV - Epic Fight Scenes",
        "description": "Best anime fight scenes compilation with epic background music. Great for AMV creators.",
        "video_url": "/uploads/sample-anime.mp4",
        "thumbnail_url": "/uploads/thumbnail-anime.jpg",
        "duration": "1:22",
        "category": "anime",
        "uploader": "AnimeVibes",
        "views": 8500,
        "likes": 512,
        "downloads": 890,
        "tags": ["anime", "fight", "amv", "action", "japanese"],
    },
    {
        "title": "Cinematic Slow Motion Sequences",
        "description": "Beautiful slow motion shots from various films and cinematic productions.",
        "video_url": "/uploads/sample-slowmo.mp4",
        "thumbnail_url": "/uploads/thumbnail-slowmo.jpg",
        "duration": "0:38",
        "category": "slowmo",
        "uploader": "FilmMagic",
        "views": 7200,
        "likes": 421,
        "downloads": 650,
        "tags": ["slowmo", "cinematic", "film", "dramatic"],
    },
    {
        "title": "Romantic Sunset Proposal Moments",
        "description": "Beautiful romantic moments and proposal scenes with golden hour lighting.",
        "video_url": "/uploads/sample-love.mp4",
        "thumbnail_url": "/uploads/thumbnail-love.jpg",
        "duration": "0:28",
        "category": "love",
        "uploader": "CinematicLove",
        "views": 4200,
        "likes": 328,
        "downloads": 891,
        "tags": ["love", "romantic", "proposal", "sunset", "couple"],
    },
    {
        "title": "Martial Arts Fight Scene Compilation",
        "description": "Epic martial arts combat sequences from action films and demonstrations.",
        "video_url": "/uploads/sample-action.mp4",
        "thumbnail_url": "/uploads/thumbnail-action.jpg",
        "duration": "0:52",
        "category": "action",
        "uploader": "ActionFlow",
        "views": 5700,
        "likes": 512,
        "downloads": 1200,
        "tags": ["action", "fight", "martial arts", "combat", "epic"],
    },
    {
        "title": "Aesthetic Nature Transitions",
        "description": "Beautiful nature scenes with smooth transitions and calming visuals.",
        "video_url": "/uploads/sample-aesthetic.mp4",
        "thumbnail_url": "/uploads/thumbnail-aesthetic.jpg",
        "duration": "0:35",
        "category": "aesthetic",
        "uploader": "VisualArts",
        "views": 6800,
        "likes": 387,
        "downloads": 742,
        "tags": ["aesthetic", "nature", "transitions", "calm", "beautiful"],
    },
]


async def seed_default_data(store: CatalogStore) -> Dict[str, int]:
    """Upsert default categories and add sample videos to an empty catalog.

    Safe to call repeatedly: categories are matched by slug and samples are
    only inserted while the catalog holds no videos.
    """
    for category in DEFAULT_CATEGORIES:
        await store.upsert_category(dict(category))

    inserted = 0
    if await store.count_videos() == 0:
        for sample in SAMPLE_VIDEOS:
            await store.insert_video({**sample, "tags": list(sample["tags"])})
            inserted += 1

    logger.info("catalog_seeded categories=%s sample_videos=%s", len(DEFAULT_CATEGORIES), inserted)
    return {"categories": len(DEFAULT_CATEGORIES), "videos": inserted}
