import pytest
from fastapi.testclient import TestClient

from noticeboard.main import create_app
from noticeboard.core.config import Settings
from noticeboard.core.exceptions import StoreError
from noticeboard.core.store import MemoryStore

SECRET = "secret123"
API_TOKEN = "test-api-token"
BASE = "/board"
API = f"{BASE}/api/announcements"


class FlakyStore(MemoryStore):
    """memory store whose reads fail for selected keys"""

    def __init__(self, broken_keys=()):
        super().__init__()
        self.broken_keys = set(broken_keys)

    async def get(self, key):
        if key in self.broken_keys:
            raise StoreError(f"cannot read {key}")
        return await super().get(key)


class DownStore(MemoryStore):
    """memory store that cannot list keys"""

    async def list_keys(self, limit):
        raise StoreError("connection refused")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="function")
def settings():
    """settings for a board mounted at /board with a short secret"""
    return Settings(
        AUTH_KEY=SECRET,
        PW="",
        API_TOKEN=API_TOKEN,
        HOME_URL=BASE,
        KV_BACKEND="memory",
    )


@pytest.fixture(scope="function")
def store():
    """fresh in-memory store for each test"""
    return MemoryStore()


def make_client(settings, store):
    return TestClient(create_app(settings, store), base_url="http://localhost:8000")


@pytest.fixture(scope="function")
def client(settings, store):
    """test client around an app wired to the memory store"""
    with make_client(settings, store) as test_client:
        yield test_client


@pytest.fixture
def api_headers():
    """authorization headers for the JSON API"""
    return {"Authorization": f"Bearer {API_TOKEN}"}


@pytest.fixture
def session_headers():
    """cookie header of a logged-in operator"""
    return {"Cookie": f"token={SECRET}"}
