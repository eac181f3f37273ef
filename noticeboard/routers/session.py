from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse

from noticeboard.core.config import Settings
from noticeboard.core.security import clear_session_cookie, home_url
from noticeboard.dependencies import get_settings, require_auth

router = APIRouter(tags=["session"])


@router.post("/api/login", dependencies=[Depends(require_auth)])
def login():
    """
    JSON login. The password check and cookie issuance happen in the auth guard;
    reaching this handler means the caller already holds a valid session.
    """
    return {"success": True}


@router.api_route("/logout", methods=["GET", "POST"], include_in_schema=False)
def logout(request: Request, settings: Settings = Depends(get_settings)):
    """Always succeeds, even without a session"""
    response = RedirectResponse(home_url(request, settings), status_code=status.HTTP_302_FOUND)
    return clear_session_cookie(response, settings)
