import logging

from fastapi import Request, Response, status

from noticeboard.core.routing import is_bare_root, resolve_path

logger = logging.getLogger(__name__)


async def base_path_middleware(request: Request, call_next):
    """Map requests under the configured base path onto the route table, deny the rest"""
    settings = request.app.state.settings
    path = request.scope["path"]

    #the site root stays silent when the board is mounted elsewhere
    if is_bare_root(path, settings.base_path):
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    route = resolve_path(path, settings.base_path)
    if route is None:
        logger.debug(f"Denied request outside base path: {request.method} {path}")
        return Response(status_code=status.HTTP_403_FORBIDDEN)

    request.scope["path"] = route
    return await call_next(request)
