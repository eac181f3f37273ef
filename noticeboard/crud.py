import asyncio
import logging
import math
import time
from datetime import datetime, timezone
from typing import Awaitable, Iterable, List, Optional, Tuple, TypeVar

from pydantic import ValidationError

from noticeboard import schemas
from noticeboard.core.exceptions import (
    AnnouncementNotFound,
    StoreError,
    StoreUnavailable,
    ValidationFailure,
)
from noticeboard.core.store import KVStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

STORE_MISSING_MESSAGE = "Key-value store is not configured"


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_announcement_id() -> str:
    # not checked for collisions, unlike caller-supplied ids
    return f"announcement_{int(time.time() * 1000)}"


def _require_store(store: Optional[KVStore]) -> KVStore:
    if store is None:
        raise StoreUnavailable(STORE_MISSING_MESSAGE)
    return store


def _to_announcement(key: str, record: dict) -> schemas.Announcement:
    try:
        return schemas.Announcement.model_validate({"id": key, **record})
    except ValidationError as e:
        raise StoreError(f"Stored value for {key!r} is not an announcement") from e


# ============= BEST-EFFORT GATHER =============

async def gather_best_effort(awaitables: Iterable[Awaitable[Optional[T]]]) -> List[T]:
    """
    Await everything concurrently and keep only the successful, non-None results.

    A failing awaitable is logged and omitted, it never fails the whole gather.
    Input order is kept for the survivors.
    """
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    kept: List[T] = []
    for result in results:
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.debug(f"Dropping item from best-effort gather: {result}")
            continue
        if result is not None:
            kept.append(result)
    return kept


# ============= PAGINATION =============

def paginate(items: List[T], page: int, page_size: int) -> Tuple[List[T], schemas.Pagination]:
    total_items = len(items)
    total_pages = max(1, math.ceil(total_items / page_size))
    page = min(total_pages, max(1, page))
    start = (page - 1) * page_size
    return items[start:start + page_size], schemas.Pagination(
        current_page=page,
        total_pages=total_pages,
        total_items=total_items,
    )


def parse_page(raw: Optional[str]) -> int:
    """?page= value as a positive int, 1 for anything unusable"""
    if raw is None:
        return 1
    try:
        page = int(raw.strip())
    except ValueError:
        return 1
    return page if page > 0 else 1


# ============= ANNOUNCEMENT CRUD =============

async def _fetch_for_listing(store: KVStore, key: str) -> Optional[schemas.Announcement]:
    record = await store.get(key)
    if record is None:
        return None
    return _to_announcement(key, record)


async def get_announcements(
    store: Optional[KVStore],
    page: int = 1,
    page_size: int = 10,
    limit: int = 1000,
) -> schemas.AnnouncementPage:
    """
    Materialize the whole board and cut one page out of it.

    Individual records that fail to load are skipped. When the store is missing
    or the key listing fails, an empty page is returned with error set, and
    callers must check it before treating the page as "no announcements".
    """
    page = page or 1
    page_size = page_size or 10

    try:
        store = _require_store(store)
        try:
            keys = await store.list_keys(limit)
        except StoreError as e:
            raise StoreUnavailable(f"Failed to list announcements: {e}") from e
    except StoreUnavailable as e:
        logger.error(f"Announcement listing failed: {e.message}")
        return schemas.AnnouncementPage(error=e.message)

    announcements = await gather_best_effort(_fetch_for_listing(store, key) for key in keys)
    items, pagination = paginate(announcements, page, page_size)
    logger.debug(f"Listed {len(items)} of {pagination.total_items} announcements, page {pagination.current_page}")
    return schemas.AnnouncementPage(announcements=items, pagination=pagination)


async def get_announcement(store: Optional[KVStore], announcement_id: str) -> schemas.Announcement:
    store = _require_store(store)
    try:
        record = await store.get(announcement_id)
        if record is None:
            raise AnnouncementNotFound()
        return _to_announcement(announcement_id, record)
    except StoreError as e:
        raise StoreUnavailable(f"Failed to load announcement: {e}") from e


def _clean_text(data: schemas.AnnouncementIn) -> Tuple[str, str]:
    title = (data.title or "").strip()
    content = (data.content or "").strip()
    if not title or not content:
        raise ValidationFailure("Title and content must not be empty")
    return title, content


async def create_announcement(store: Optional[KVStore], data: schemas.AnnouncementIn) -> schemas.Announcement:
    store = _require_store(store)
    title, content = _clean_text(data)

    requested_id = (data.id or "").strip()
    try:
        if requested_id:
            if await store.get(requested_id) is not None:
                raise ValidationFailure(f'ID "{requested_id}" already exists, please choose another ID')
            announcement_id = requested_id
        else:
            announcement_id = generate_announcement_id()

        announcement = schemas.Announcement(
            id=announcement_id,
            title=title,
            content=content,
            created_at=utc_timestamp(),
        )
        await store.put(announcement_id, announcement.to_store())
    except StoreError as e:
        raise StoreUnavailable(f"Failed to save announcement: {e}") from e

    logger.info(f"Created announcement {announcement_id} ({len(content)} chars)")
    return announcement


async def update_announcement(
    store: Optional[KVStore],
    announcement_id: str,
    data: schemas.AnnouncementIn,
) -> schemas.Announcement:
    store = _require_store(store)
    try:
        record = await store.get(announcement_id)
        if record is None:
            raise AnnouncementNotFound()

        title, content = _clean_text(data)
        if data.id and data.id != announcement_id:
            raise ValidationFailure("ID mismatch, announcement IDs cannot be changed")

        merged = {
            **record,
            "id": announcement_id,
            "title": title,
            "content": content,
            "updatedAt": utc_timestamp(),
        }
        announcement = _to_announcement(announcement_id, merged)
        await store.put(announcement_id, announcement.to_store())
    except StoreError as e:
        raise StoreUnavailable(f"Failed to update announcement: {e}") from e

    logger.info(f"Updated announcement {announcement_id}")
    return announcement


async def delete_announcement(store: Optional[KVStore], announcement_id: str) -> bool:
    """Delete by id. Returns whether the record existed; a missing id is not an error."""
    store = _require_store(store)
    try:
        try:
            existed = await store.get(announcement_id) is not None
        except StoreError:
            # present but unreadable, still removable
            existed = True
        if not existed:
            logger.info(f"Announcement {announcement_id} already absent, nothing to delete")
            return False
        await store.delete(announcement_id)
    except StoreError as e:
        raise StoreUnavailable(f"Failed to delete announcement: {e}") from e

    logger.info(f"Deleted announcement {announcement_id}")
    return True
