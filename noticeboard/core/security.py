import enum
import hmac
import logging
import re
import string
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import parse_qs

from fastapi import Request, Response, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from jose import JWTError, jwt
from starlette.exceptions import HTTPException as StarletteHTTPException

from noticeboard.core.config import Settings
from noticeboard.core import pages

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "Surrogate-Control": "no-store",
    "CDN-Cache-Control": "no-store",
}

API_PREFIX = "/api/"
API_LOGIN_PATH = "/api/login"

INVALID_API_TOKEN = "Authentication failed, a valid API token is required"
AUTH_REQUIRED = "Authentication failed, valid credentials are required"
WRONG_PASSWORD = "Incorrect password"
BAD_LOGIN_REQUEST = "Could not read the login request"

# characters Set-Cookie writes without quoting (http.cookies legal chars)
_COOKIE_SAFE_CHARS = frozenset(string.ascii_letters + string.digits + "!#$%&'*+-.^_`|~:")
_COOKIE_ESCAPE = re.compile(r"\\(?:([0-3][0-7][0-7])|(.))")


class AuthOutcome(enum.Enum):
    ALLOWED = "allowed"
    CHALLENGE = "challenge"
    DENIED = "denied"


@dataclass
class AuthResult:
    outcome: AuthOutcome
    response: Optional[Response] = None

    @property
    def allowed(self) -> bool:
        return self.outcome is AuthOutcome.ALLOWED


ALLOWED = AuthResult(AuthOutcome.ALLOWED)


def add_no_cache_headers(response: Response) -> Response:
    for name, value in NO_CACHE_HEADERS.items():
        response.headers[name] = value
    return response


def _same(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode(), b.encode())


# ============= CREDENTIAL PARSING =============

def parse_cookie(header: Optional[str], name: str) -> Optional[str]:
    """
    Value of cookie `name` from a raw Cookie header, or None.

    Accepts the cookie alone (`token=abc`), among others separated by
    semicolons with or without spaces, and surrounding double quotes.
    An empty value counts as absent.
    """
    if not header:
        return None
    for part in header.split(";"):
        key, sep, value = part.strip().partition("=")
        if not sep or key.strip() != name:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = _unescape_cookie(value[1:-1])
        return value or None
    return None


def _unescape_cookie(value: str) -> str:
    # quoted values use backslash escapes, octal for bytes like `,` and `é`
    return _COOKIE_ESCAPE.sub(
        lambda m: chr(int(m.group(1), 8)) if m.group(1) else m.group(2),
        value,
    )


def is_cookie_safe(value: str) -> bool:
    """True when `value` can be written as a bare cookie value without quoting"""
    return all(c in _COOKIE_SAFE_CHARS for c in value)


def extract_api_token(header: Optional[str]) -> str:
    """Token from an Authorization header, either `Bearer <token>` or the raw token"""
    header = header or ""
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip()
    return header.strip()


def is_api_path(path: str) -> bool:
    return path.startswith(API_PREFIX)


# ============= SESSION TOKENS =============

def create_session_token(settings: Settings) -> str:
    """
    Cookie value issued on login. Short secrets are used as-is; longer ones, and
    ones a browser would only get back quoted, get a random token signed with
    the secret so it can be checked without state.
    """
    secret = settings.shared_secret
    if len(secret) < settings.INLINE_SECRET_MAX_LENGTH and is_cookie_safe(secret):
        return secret
    expire = datetime.now(timezone.utc) + timedelta(seconds=settings.COOKIE_MAX_AGE)
    payload = {"jti": str(uuid.uuid4()), "exp": expire, "token_type": "session"}
    return jwt.encode(payload, secret, algorithm=settings.SESSION_TOKEN_ALGORITHM)


def verify_session_token(token: Optional[str], settings: Settings) -> bool:
    secret = settings.shared_secret
    if not token:
        return False
    if _same(token, secret):
        return True
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.SESSION_TOKEN_ALGORITHM])
    except JWTError:
        return False
    return payload.get("token_type") == "session"


def verify_api_token(request: Request, settings: Settings) -> bool:
    # an unset API token locks the API
    if not settings.API_TOKEN:
        return False
    token = extract_api_token(request.headers.get("Authorization"))
    return _same(token, settings.API_TOKEN)


def set_session_cookie(response: Response, settings: Settings) -> Response:
    response.set_cookie(
        key=settings.COOKIE_NAME,
        value=create_session_token(settings),
        max_age=settings.COOKIE_MAX_AGE,
        path="/",
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite="strict",
    )
    return response


def clear_session_cookie(response: Response, settings: Settings) -> Response:
    response.delete_cookie(
        key=settings.COOKIE_NAME,
        path="/",
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite="strict",
    )
    return response


def home_url(request: Request, settings: Settings) -> str:
    return f"{request.url.scheme}://{request.url.netloc}{settings.HOME_URL}"


# ============= RESPONSES =============

def _json_error(message: str, status_code: int = status.HTTP_401_UNAUTHORIZED, headers: Optional[dict] = None) -> Response:
    return add_no_cache_headers(JSONResponse(status_code=status_code, content={"error": message}, headers=headers))


def login_page_response(settings: Settings, error: bool = False, status_code: int = status.HTTP_401_UNAUTHORIZED) -> Response:
    html = pages.render_login_page(settings.PROJECT_NAME, error=error)
    return add_no_cache_headers(HTMLResponse(html, status_code=status_code))


def api_denied_response() -> Response:
    return _json_error(INVALID_API_TOKEN, headers={"WWW-Authenticate": "Bearer"})


# ============= LOGIN =============

class _UnreadableBody(Exception):
    pass


async def read_password(request: Request) -> Optional[str]:
    """
    `password` field of a login POST, trimmed. None when the body has no such field.
    Raises _UnreadableBody when the declared content cannot be parsed.
    """
    content_type = request.headers.get("content-type", "")
    try:
        if "application/x-www-form-urlencoded" in content_type or "multipart/form-data" in content_type:
            form = await request.form()
            value = form.get("password")
        elif "application/json" in content_type:
            data = await request.json()
            value = data.get("password") if isinstance(data, dict) else None
        else:
            body = (await request.body()).decode("utf-8", errors="replace")
            values = parse_qs(body, keep_blank_values=True).get("password")
            value = values[0] if values else None
    except (ValueError, StarletteHTTPException) as e:
        raise _UnreadableBody(str(e)) from e

    if value is None or not isinstance(value, str):
        return None
    return value.strip()


async def handle_login(request: Request, settings: Settings, api: bool) -> Optional[Response]:
    """
    Process a password POST. Returns the success or failure response, or None
    when the request carried no password at all.
    """
    try:
        password = await read_password(request)
    except _UnreadableBody as e:
        logger.warning(f"Unreadable login request on {request.url.path}: {e}")
        if api:
            return _json_error(BAD_LOGIN_REQUEST, status_code=status.HTTP_400_BAD_REQUEST)
        return login_page_response(settings, error=True, status_code=status.HTTP_400_BAD_REQUEST)

    if password is None:
        return None

    if not _same(password, settings.shared_secret):
        logger.info("Rejected login attempt with wrong password")
        if api:
            return _json_error(WRONG_PASSWORD)
        return login_page_response(settings, error=True)

    logger.info("Operator logged in")
    if api:
        response = JSONResponse(content={"success": True})
    else:
        response = RedirectResponse(home_url(request, settings), status_code=status.HTTP_302_FOUND)
    return add_no_cache_headers(set_session_cookie(response, settings))


# ============= GUARD =============

async def authorize(request: Request, settings: Settings) -> AuthResult:
    """
    Decide whether a request may reach a protected route.

    `request.url.path` is expected to be the route path relative to the base
    path (see the base path middleware), so API routes start with /api/.
    """
    if not settings.shared_secret:
        return ALLOWED

    path = request.url.path
    login_endpoint = path == API_LOGIN_PATH
    api = is_api_path(path)

    # API calls authenticate with the API token only
    if api and not login_endpoint:
        if verify_api_token(request, settings):
            return ALLOWED
        return AuthResult(AuthOutcome.DENIED, api_denied_response())

    cookie = parse_cookie(request.headers.get("cookie"), settings.COOKIE_NAME)
    if verify_session_token(cookie, settings):
        return ALLOWED

    if request.method == "POST":
        response = await handle_login(request, settings, api=login_endpoint)
        if response is not None:
            return AuthResult(AuthOutcome.CHALLENGE, response)

    if api:
        return AuthResult(AuthOutcome.CHALLENGE, _json_error(AUTH_REQUIRED))
    return AuthResult(AuthOutcome.CHALLENGE, login_page_response(settings))
