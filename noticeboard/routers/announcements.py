import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from noticeboard import crud, schemas
from noticeboard.core.config import Settings
from noticeboard.core.store import KVStore
from noticeboard.dependencies import announcement_body, get_settings, get_store, require_auth

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/announcements",
    tags=["announcements"],
    dependencies=[Depends(require_auth)],
)


@router.get("", response_model=schemas.AnnouncementListResponse, response_model_exclude_none=True)
async def list_announcements(
    page: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
    store: Optional[KVStore] = Depends(get_store),
):
    result = await crud.get_announcements(
        store,
        page=crud.parse_page(page),
        page_size=settings.PAGE_SIZE,
        limit=settings.LIST_KEYS_LIMIT,
    )

    if result.error:
        return JSONResponse(status_code=500, content={"error": result.error})

    return schemas.AnnouncementListResponse(
        announcements=result.announcements,
        pagination=result.pagination,
    )


@router.get("/{announcement_id}", response_model=schemas.Announcement, response_model_exclude_none=True)
async def get_announcement(
    announcement_id: str,
    store: Optional[KVStore] = Depends(get_store),
):
    return await crud.get_announcement(store, announcement_id)


@router.post("", response_model=schemas.CreateResult)
async def create_announcement(
    announcement_data: schemas.AnnouncementIn = Depends(announcement_body),
    store: Optional[KVStore] = Depends(get_store),
):
    announcement = await crud.create_announcement(store, announcement_data)
    return schemas.CreateResult(id=announcement.id)


@router.put("/{announcement_id}", response_model=schemas.SuccessResult, response_model_exclude_none=True)
async def update_announcement(
    announcement_id: str,
    announcement_update: schemas.AnnouncementIn = Depends(announcement_body),
    store: Optional[KVStore] = Depends(get_store),
):
    await crud.update_announcement(store, announcement_id, announcement_update)
    return schemas.SuccessResult()


@router.delete("/{announcement_id}", response_model=schemas.SuccessResult, response_model_exclude_none=True)
async def delete_announcement(
    announcement_id: str,
    store: Optional[KVStore] = Depends(get_store),
):
    existed = await crud.delete_announcement(store, announcement_id)
    if not existed:
        return schemas.SuccessResult(message="Announcement does not exist or was already deleted")
    return schemas.SuccessResult()
