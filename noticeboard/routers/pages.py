from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse

from noticeboard import crud
from noticeboard.core import pages
from noticeboard.core.config import Settings
from noticeboard.core.store import KVStore
from noticeboard.dependencies import get_settings, get_store, require_auth

router = APIRouter(
    tags=["pages"],
    include_in_schema=False,
    dependencies=[Depends(require_auth)],
)


async def _render_board(settings: Settings, store: Optional[KVStore], page: Optional[str], is_admin: bool) -> HTMLResponse:
    result = await crud.get_announcements(
        store,
        page=crud.parse_page(page),
        page_size=settings.PAGE_SIZE,
        limit=settings.LIST_KEYS_LIMIT,
    )

    if result.error:
        return HTMLResponse(pages.render_load_error(result.error, settings.base_path), status_code=500)

    title = f"{settings.PROJECT_NAME} - Admin" if is_admin else settings.PROJECT_NAME
    html = pages.render_board_page(
        title,
        result.announcements,
        result.pagination,
        settings.base_path,
        is_admin=is_admin,
        api_token=settings.API_TOKEN if is_admin else None,
    )
    return HTMLResponse(html)


# POST is accepted so the login form can submit to the page it was shown on

@router.api_route("/", methods=["GET", "POST"], response_class=HTMLResponse)
async def board(
    page: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
    store: Optional[KVStore] = Depends(get_store),
):
    return await _render_board(settings, store, page, is_admin=False)


@router.api_route("/admin", methods=["GET", "POST"], response_class=HTMLResponse)
async def admin_board(
    page: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
    store: Optional[KVStore] = Depends(get_store),
):
    return await _render_board(settings, store, page, is_admin=True)
