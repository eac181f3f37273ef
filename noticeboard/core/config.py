from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import List


class Settings(BaseSettings):
    # --- Project Settings ---
    PROJECT_NAME: str = "Noticeboard"
    HOME_URL: str = "/"
    PAGE_SIZE: int = 10
    LIST_KEYS_LIMIT: int = 1000
    ALLOWED_HOSTS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    @field_validator("HOME_URL", mode="before")
    @classmethod
    def normalize_home_url(cls, v: str) -> str:
        path = (v or "/").strip()
        if not path.startswith("/"):
            path = "/" + path
        return path.rstrip("/") or "/"

    # --- Security Settings ---
    AUTH_KEY: str = ""
    PW: str = ""
    API_TOKEN: str = ""
    COOKIE_NAME: str = "token"
    COOKIE_MAX_AGE: int = 60 * 60 * 24 * 7
    COOKIE_SECURE: bool = False
    INLINE_SECRET_MAX_LENGTH: int = 20
    SESSION_TOKEN_ALGORITHM: str = "HS256"

    @property
    def shared_secret(self) -> str:
        # AUTH_KEY wins, PW is kept for older deployments
        return self.AUTH_KEY or self.PW

    @property
    def base_path(self) -> str:
        """Base path without trailing slash, empty when mounted at the root."""
        return self.HOME_URL.rstrip("/")

    # --- Key-Value Store Settings ---
    KV_BACKEND: str = "redis"
    REDIS_URL: str = ""
    KV_NAMESPACE: str = "noticeboard:"

    @field_validator("KV_BACKEND")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        backend = v.strip().lower()
        if backend not in ("redis", "memory"):
            raise ValueError("KV_BACKEND must be 'redis' or 'memory'")
        return backend

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env")


@lru_cache
def get_settings() -> Settings:
    return Settings()
