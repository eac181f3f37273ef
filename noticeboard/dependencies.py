from typing import Optional

from fastapi import Depends, Request
from pydantic import ValidationError

from noticeboard import schemas
from noticeboard.core.config import Settings
from noticeboard.core.exceptions import INVALID_REQUEST_DATA, AuthFailure, ValidationFailure
from noticeboard.core.security import authorize
from noticeboard.core.store import KVStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> Optional[KVStore]:
    return request.app.state.store


async def require_auth(request: Request, settings: Settings = Depends(get_settings)) -> None:
    """Let the request through or short-circuit with the guard's login/denial response"""
    result = await authorize(request, settings)
    if not result.allowed:
        raise AuthFailure(result.response)


async def announcement_body(request: Request) -> schemas.AnnouncementIn:
    """
    Create/update body. Read here instead of as a body parameter so that the
    router's auth dependency runs before any of the payload is parsed.
    """
    try:
        data = await request.json()
        return schemas.AnnouncementIn.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ValidationFailure(INVALID_REQUEST_DATA) from e
