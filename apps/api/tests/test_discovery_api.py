import pytest

from config import settings
from services.catalog_store import InMemoryCatalogStore
from services.seed import DEFAULT_CATEGORIES, SAMPLE_VIDEOS


@pytest.mark.asyncio
async def test_health(api_client):
    response = await api_client.get("/api/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["message"] == "Best Edit Clips API is running!"
    assert payload["status"] == "healthy"
    assert payload["database"] == "up"
    assert payload["timestamp"]
    assert (await api_client.get("/api/health/live")).status_code == 404


@pytest.mark.asyncio
async def test_init_is_idempotent(api_client):
    first = await api_client.post("/api/init")
    second = await api_client.post("/api/init")
    assert first.status_code == 200
    assert first.json()["videos"] == len(SAMPLE_VIDEOS)
    assert second.json()["videos"] == 0

    categories = (await api_client.get("/api/categories")).json()
    assert len(categories) == len(DEFAULT_CATEGORIES)
    assert [category["name"] for category in categories] == sorted(c["name"] for c in DEFAULT_CATEGORIES)


@pytest.mark.asyncio
async def test_trending_and_recent(seeded_client):
    trending = (await seeded_client.get("/api/trending", params={"limit": 2})).json()
    assert [video["title"] for video in trending] == [
        "Epic Soccer Goals Compilation",
        "Anime AMV - Epic Fight Scenes",
    ]

    default_trending = (await seeded_client.get("/api/trending")).json()
    views = [video["views"] for video in default_trending]
    assert views == sorted(views, reverse=True)

    recent = (await seeded_client.get("/api/recent", params={"limit": 3})).json()
    assert len(recent) == 3
    created = [video["createdAt"] for video in recent]
    assert created == sorted(created, reverse=True)


@pytest.mark.asyncio
async def test_search_orders_by_views_and_respects_category(seeded_client):
    payload = (await seeded_client.get("/api/search", params={"q": "epic"})).json()
    assert set(payload) == {"videos", "total", "totalPages", "currentPage"}
    views = [video["views"] for video in payload["videos"]]
    assert views == sorted(views, reverse=True)
    assert payload["total"] == 3

    narrowed = (await seeded_client.get("/api/search", params={"q": "epic", "category": "action"})).json()
    assert narrowed["total"] == 1
    assert narrowed["videos"][0]["category"] == "action"

    paged = (await seeded_client.get("/api/search", params={"q": "epic", "limit": 2, "page": 2})).json()
    assert paged["totalPages"] == 2
    assert paged["currentPage"] == 2
    assert len(paged["videos"]) == 1

    unbounded = await seeded_client.get("/api/search", params={"q": "epic", "limit": "1e999"})
    assert unbounded.status_code == 200
    assert unbounded.json()["total"] == 3
    assert unbounded.json()["currentPage"] == 1


@pytest.mark.asyncio
async def test_category_detail(seeded_client):
    response = await seeded_client.get("/api/categories/sports")
    assert response.status_code == 200
    payload = response.json()
    assert payload["category"]["slug"] == "sports"
    assert payload["category"]["videoCount"] == 1
    assert payload["videos"][0]["category"] == "sports"

    assert (await seeded_client.get("/api/categories/cooking")).status_code == 404


@pytest.mark.asyncio
async def test_stats(seeded_client):
    await seeded_client.post(
        "/api/auth/register",
        json={"username": "viewer", "email": "viewer@example.com", "password": "secret123"},
    )
    payload = (await seeded_client.get("/api/stats")).json()
    assert payload["totalVideos"] == len(SAMPLE_VIDEOS)
    assert payload["totalViews"] == sum(video["views"] for video in SAMPLE_VIDEOS)
    assert payload["totalDownloads"] == sum(video["downloads"] for video in SAMPLE_VIDEOS)
    assert payload["totalUsers"] == 1
    assert len(payload["topCategories"]) == settings.TOP_CATEGORIES_LIMIT
    counts = [category["videoCount"] for category in payload["topCategories"]]
    assert counts == sorted(counts, reverse=True)


@pytest.mark.asyncio
async def test_memory_backend_serves_same_contract(api_client, monkeypatch):
    store = InMemoryCatalogStore()
    monkeypatch.setattr(settings, "CATALOG_BACKEND", "memory")
    monkeypatch.setattr("services.catalog_store._memory_store", store)

    await api_client.post("/api/init")
    listing = (await api_client.get("/api/videos", params={"category": "sports", "limit": 1})).json()
    assert listing["total"] == 1
    assert listing["hasNextPage"] is False

    video_id = listing["videos"][0]["id"]
    viewed = (await api_client.get(f"/api/videos/{video_id}")).json()
    assert viewed["views"] == SAMPLE_VIDEOS[0]["views"] + 1

    liked = (await api_client.post(f"/api/videos/{video_id}/like")).json()
    assert liked["likes"] == SAMPLE_VIDEOS[0]["likes"] + 1
    assert (await api_client.post("/api/videos/999/like")).status_code == 404
