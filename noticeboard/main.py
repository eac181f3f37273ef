import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from noticeboard.core.config import Settings, get_settings
from noticeboard.core.exceptions import INVALID_REQUEST_DATA, AuthFailure, NoticeboardError
from noticeboard.core.security import add_no_cache_headers
from noticeboard.core.store import KVStore, build_store
from noticeboard.middleware.base_path import base_path_middleware
from .routers import announcements, pages, session

logger = logging.getLogger(__name__)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = app.state.store
    if store is not None and not await store.ping():
        logger.warning("Key-value store did not answer at startup, requests will report it as unavailable")
    yield
    if store is not None:
        await store.close()


def create_app(settings: Optional[Settings] = None, store: Optional[KVStore] = None) -> FastAPI:
    """Build the board. Without arguments, settings come from the environment and the store from them."""
    settings = settings or get_settings()
    if store is None:
        store = build_store(settings)

    logging.getLogger("noticeboard").setLevel(settings.LOG_LEVEL.upper())

    app = FastAPI(
        lifespan=lifespan,
        title=settings.PROJECT_NAME,
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.store = store

    #trusted hosts
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

    #base path resolution and default deny
    app.middleware("http")(base_path_middleware)

    #security + cache headers, last line of defence for unhandled errors
    @app.middleware("http")
    async def response_headers(request: Request, call_next):
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"Unhandled error while serving {request.method} {request.url.path}")
            response = PlainTextResponse("Internal server error", status_code=500)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        return add_no_cache_headers(response)

    @app.exception_handler(AuthFailure)
    async def auth_failure_handler(request: Request, exc: AuthFailure):
        return exc.response

    @app.exception_handler(NoticeboardError)
    async def noticeboard_error_handler(request: Request, exc: NoticeboardError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": INVALID_REQUEST_DATA})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)

    app.include_router(session.router)
    app.include_router(announcements.router)
    app.include_router(pages.router)

    #anything under the base path that no route claims gets an empty answer
    @app.api_route("/{rest:path}", methods=ALL_METHODS, include_in_schema=False)
    def unmatched(rest: str):
        return Response(status_code=204)

    return app


app = create_app()
