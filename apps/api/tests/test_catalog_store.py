import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import select

from models.video import Video
from services.catalog_store import InMemoryCatalogStore, SqlCatalogStore
from services.errors import NotFoundError, ValidationError
from services.seed import DEFAULT_CATEGORIES, SAMPLE_VIDEOS, seed_default_data


def _new_video(title="Fresh clip", category="sports", **overrides):
    fields = {
        "title": title,
        "video_url": "/uploads/fresh.mp4",
        "thumbnail_url": "/uploads/fresh.jpg",
        "category": category,
        "uploader": "tester",
        "tags": ["fresh"],
    }
    fields.update(overrides)
    return fields


@pytest.mark.asyncio
async def test_memory_store_seed_is_idempotent():
    store = InMemoryCatalogStore()
    assert await store.count_videos() == 0
    assert await store.list_categories() == []

    first = await seed_default_data(store)
    second = await seed_default_data(store)

    assert first == {"categories": len(DEFAULT_CATEGORIES), "videos": len(SAMPLE_VIDEOS)}
    assert second["videos"] == 0
    assert await store.count_videos() == len(SAMPLE_VIDEOS)
    assert [category.name for category in await store.list_categories()] == sorted(
        category["name"] for category in DEFAULT_CATEGORIES
    )


@pytest.mark.asyncio
async def test_memory_store_view_increments_only_target():
    store = InMemoryCatalogStore()
    first = await store.insert_video(_new_video("one"))
    second = await store.insert_video(_new_video("two"))

    viewed = await store.view_video(first.id)
    assert viewed.views == 1
    assert viewed.updated_at >= first.updated_at
    assert (await store.get_video(second.id)).views == 0


@pytest.mark.asyncio
async def test_memory_store_concurrent_increments_are_not_lost():
    store = InMemoryCatalogStore()
    video = await store.insert_video(_new_video())

    await asyncio.gather(*(store.increment_counter(video.id, "likes") for _ in range(50)))

    def _download():
        return asyncio.run(store.increment_counter(video.id, "downloads"))

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: _download(), range(40)))

    current = await store.get_video(video.id)
    assert current.likes == 50
    assert current.downloads == 40
    assert sorted(results) == list(range(1, 41))


@pytest.mark.asyncio
async def test_memory_store_concurrent_views_are_not_lost():
    store = InMemoryCatalogStore()
    video = await store.insert_video(_new_video())

    viewed = await asyncio.gather(*(store.view_video(video.id) for _ in range(30)))

    def _view():
        return asyncio.run(store.view_video(video.id)).views

    with ThreadPoolExecutor(max_workers=8) as pool:
        threaded = list(pool.map(lambda _: _view(), range(20)))

    assert sorted(record.views for record in viewed) == list(range(1, 31))
    assert sorted(threaded) == list(range(31, 51))
    assert (await store.get_video(video.id)).views == 50


@pytest.mark.asyncio
async def test_memory_store_missing_video_and_unknown_counter():
    store = InMemoryCatalogStore()
    await store.insert_video(_new_video())

    with pytest.raises(NotFoundError):
        await store.increment_counter("x", "likes")
    with pytest.raises(NotFoundError):
        await store.view_video(999)
    with pytest.raises(NotFoundError):
        await store.view_video("99999999999999999999")
    with pytest.raises(ValidationError):
        await store.increment_counter(1, "shares")

    assert await store.count_videos() == 1
    assert (await store.get_video(1)).likes == 0


@pytest.mark.asyncio
async def test_memory_store_returns_copies():
    store = InMemoryCatalogStore()
    video = await store.insert_video(_new_video())
    video.likes = 999
    assert (await store.get_video(video.id)).likes == 0


@pytest.mark.asyncio
async def test_sql_store_lists_in_insertion_order_and_filters(session_maker):
    async with session_maker() as session:
        store = SqlCatalogStore(session)
        await store.insert_video(_new_video("a", category="sports"))
        await store.insert_video(_new_video("b", category="anime", uploader="other"))
        await store.insert_video(_new_video("c", category="sports"))

        assert [video.title for video in await store.list_videos()] == ["a", "b", "c"]
        assert [video.title for video in await store.list_videos(category="sports")] == ["a", "c"]
        assert [video.title for video in await store.list_videos(uploader="other")] == ["b"]
        assert await store.category_counts() == {"sports": 2, "anime": 1}


@pytest.mark.asyncio
async def test_sql_store_view_increments_views_and_timestamp(session_maker):
    async with session_maker() as session:
        store = SqlCatalogStore(session)
        target = await store.insert_video(_new_video("target"))
        other = await store.insert_video(_new_video("other"))
        created_updated_at = target.updated_at

    async with session_maker() as session:
        viewed = await SqlCatalogStore(session).view_video(str(target.id))
        assert viewed.views == 1

    async with session_maker() as session:
        rows = {row.id: row for row in (await session.execute(select(Video))).scalars().all()}
        assert rows[target.id].views == 1
        assert rows[target.id].updated_at >= created_updated_at
        assert rows[other.id].views == 0


@pytest.mark.asyncio
async def test_sql_store_concurrent_likes_are_not_lost(session_maker):
    async with session_maker() as session:
        video = await SqlCatalogStore(session).insert_video(_new_video())

    async def _like():
        async with session_maker() as session:
            return await SqlCatalogStore(session).increment_counter(video.id, "likes")

    results = await asyncio.gather(*(_like() for _ in range(10)))

    async with session_maker() as session:
        current = await SqlCatalogStore(session).get_video(video.id)
    assert current.likes == 10
    assert sorted(results) == list(range(1, 11))


@pytest.mark.asyncio
async def test_sql_store_concurrent_views_are_not_lost(session_maker):
    async with session_maker() as session:
        store = SqlCatalogStore(session)
        video = await store.insert_video(_new_video())
        other = await store.insert_video(_new_video("other"))

    async def _view():
        async with session_maker() as session:
            return (await SqlCatalogStore(session).view_video(video.id)).views

    seen = await asyncio.gather(*(_view() for _ in range(10)))

    async with session_maker() as session:
        store = SqlCatalogStore(session)
        assert (await store.get_video(video.id)).views == 10
        assert (await store.get_video(other.id)).views == 0
    assert sorted(seen) == list(range(1, 11))


@pytest.mark.asyncio
async def test_sql_store_increment_missing_video_changes_nothing(session_maker):
    async with session_maker() as session:
        store = SqlCatalogStore(session)
        await seed_default_data(store)
        before = await store.video_totals()

        with pytest.raises(NotFoundError):
            await store.increment_counter("x", "likes")
        with pytest.raises(NotFoundError):
            await store.increment_counter(10_000, "downloads")

        assert await store.video_totals() == before
        assert await store.count_videos() == len(SAMPLE_VIDEOS)


@pytest.mark.asyncio
async def test_sql_store_totals_and_category_upsert(session_maker):
    async with session_maker() as session:
        store = SqlCatalogStore(session)
        await seed_default_data(store)
        count, views, downloads = await store.video_totals()
        assert count == len(SAMPLE_VIDEOS)
        assert views == sum(video["views"] for video in SAMPLE_VIDEOS)
        assert downloads == sum(video["downloads"] for video in SAMPLE_VIDEOS)

        await store.upsert_category({"name": "Sports Highlights", "slug": "sports"})
        renamed = await store.get_category("sports")
        assert renamed.name == "Sports Highlights"
        assert renamed.icon == "fas fa-basketball-ball"
        assert len(await store.list_categories()) == len(DEFAULT_CATEGORIES)
