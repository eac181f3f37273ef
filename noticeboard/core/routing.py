from typing import Optional

ANNOUNCEMENT_ITEM_PREFIX = "/api/announcements/"


def resolve_path(path: str, base_path: str) -> Optional[str]:
    """
    Translate a public request path into the internal route path.

    base_path has no trailing slash ("" when mounted at the root). Matching is
    case-insensitive and ignores one trailing slash; announcement ids keep their
    case. Returns None for paths outside the base path.
    """
    path = path or "/"
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]

    lower_base = base_path.lower()
    lower_path = path.lower()
    if lower_base:
        if lower_path != lower_base and not lower_path.startswith(lower_base + "/"):
            return None
        rest = path[len(base_path):]
    else:
        rest = path

    if not rest or rest == "/":
        return "/"
    if rest.lower().startswith(ANNOUNCEMENT_ITEM_PREFIX):
        return ANNOUNCEMENT_ITEM_PREFIX + rest[len(ANNOUNCEMENT_ITEM_PREFIX):]
    return rest.lower()


def is_bare_root(path: str, base_path: str) -> bool:
    """The site root, when the board lives somewhere else"""
    return bool(base_path) and path in ("", "/")
