"""tests for the announcement repository"""
import math

import pytest

from noticeboard import crud, schemas
from noticeboard.core.exceptions import AnnouncementNotFound, StoreUnavailable, ValidationFailure
from noticeboard.core.store import MemoryStore
from conftest import DownStore, FlakyStore

pytestmark = pytest.mark.anyio


async def fill(store, count):
    for i in range(count):
        await store.put(f"item-{i:03d}", {"id": f"item-{i:03d}", "title": f"T{i}", "content": "C", "createdAt": "2024-01-01T00:00:00.000Z"})


@pytest.mark.parametrize("total", [0, 1, 9, 10, 11, 25, 30])
async def test_pagination_invariants(total):
    """test page count formula, clamping and page size bound"""
    store = MemoryStore()
    await fill(store, total)
    expected_pages = max(1, math.ceil(total / 10))

    seen = []
    for page in range(-1, expected_pages + 3):
        result = await crud.get_announcements(store, page=page, page_size=10)
        assert result.error is None
        assert result.pagination.total_pages == expected_pages
        assert result.pagination.total_items == total
        assert 1 <= result.pagination.current_page <= expected_pages
        assert len(result.announcements) <= 10
        if 1 <= page <= expected_pages:
            seen.extend(a.id for a in result.announcements)

    assert sorted(seen) == sorted(f"item-{i:03d}" for i in range(total))


async def test_listing_respects_key_limit():
    """test no more than the key listing bound is materialized"""
    store = MemoryStore()
    await fill(store, 15)
    result = await crud.get_announcements(store, page=1, page_size=50, limit=12)
    assert result.pagination.total_items == 12


async def test_listing_drops_unreadable_items():
    """test one broken record is skipped, the rest are listed"""
    store = FlakyStore(broken_keys={"item-001"})
    await fill(store, 3)
    result = await crud.get_announcements(store)
    assert result.error is None
    assert [a.id for a in result.announcements] == ["item-000", "item-002"]
    assert result.pagination.total_items == 2


async def test_listing_drops_malformed_records():
    """test records that are not announcements are skipped"""
    store = MemoryStore()
    await fill(store, 1)
    await store.put("odd", {"title": ["not", "a", "string"]})
    result = await crud.get_announcements(store)
    assert [a.id for a in result.announcements] == ["item-000"]


async def test_listing_failure_reports_error():
    """test a failed key listing => empty page with error"""
    result = await crud.get_announcements(DownStore())
    assert result.announcements == []
    assert result.pagination == schemas.Pagination()
    assert "connection refused" in result.error


async def test_listing_without_store():
    """test a missing store => error, not an empty board"""
    result = await crud.get_announcements(None)
    assert result.error == crud.STORE_MISSING_MESSAGE


async def test_gather_best_effort_keeps_order_and_drops_failures():
    """test failures and None results are omitted"""

    async def value(v):
        return v

    async def fail():
        raise ValueError("nope")

    result = await crud.gather_best_effort([value(1), fail(), value(None), value(3)])
    assert result == [1, 3]


async def test_create_get_round_trip():
    """test create then get returns the same title and content"""
    store = MemoryStore()
    created = await crud.create_announcement(store, schemas.AnnouncementIn(title="A", content="B"))
    assert created.id.startswith("announcement_")

    loaded = await crud.get_announcement(store, created.id)
    assert loaded.title == "A"
    assert loaded.content == "B"
    assert loaded.created_at == created.created_at


async def test_create_conflict_does_not_overwrite():
    """test a duplicate caller id raises and keeps the original"""
    store = MemoryStore()
    await crud.create_announcement(store, schemas.AnnouncementIn(id="x", title="A", content="B"))
    with pytest.raises(ValidationFailure):
        await crud.create_announcement(store, schemas.AnnouncementIn(id="x", title="C", content="D"))
    assert (await crud.get_announcement(store, "x")).title == "A"


async def test_update_keeps_created_at():
    """test update sets updatedAt and leaves createdAt alone"""
    store = MemoryStore()
    created = await crud.create_announcement(store, schemas.AnnouncementIn(id="x", title="A", content="B"))
    updated = await crud.update_announcement(store, "x", schemas.AnnouncementIn(title="C", content="D"))
    assert updated.created_at == created.created_at
    assert updated.updated_at is not None
    assert (await crud.get_announcement(store, "x")).title == "C"


async def test_update_missing_raises_not_found():
    """test update on unknown id => AnnouncementNotFound"""
    with pytest.raises(AnnouncementNotFound):
        await crud.update_announcement(MemoryStore(), "ghost", schemas.AnnouncementIn(title="A", content="B"))


async def test_delete_reports_existence():
    """test delete is idempotent and tells whether anything was removed"""
    store = MemoryStore()
    await crud.create_announcement(store, schemas.AnnouncementIn(id="x", title="A", content="B"))
    assert await crud.delete_announcement(store, "x") is True
    assert await crud.delete_announcement(store, "x") is False


async def test_delete_removes_unreadable_record():
    """test a record that cannot be parsed can still be deleted"""
    store = MemoryStore()
    store._data["bad"] = "{not json"
    assert await crud.delete_announcement(store, "bad") is True
    assert await store.get("bad") is None


async def test_store_errors_become_unavailable():
    """test backend failures surface as StoreUnavailable"""
    store = FlakyStore(broken_keys={"x"})
    with pytest.raises(StoreUnavailable):
        await crud.get_announcement(store, "x")
    with pytest.raises(StoreUnavailable):
        await crud.get_announcement(None, "x")

