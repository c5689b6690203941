"""
Configuration helpers for the LinkPage backend.

Settings are read from environment variables once and cached, so that
routers/services never fetch os.environ directly. The app factory also
accepts an explicit Settings instance (tests build their own).
"""

from dataclasses import dataclass
from functools import lru_cache
import os

DEV_JWT_SECRET = "dev_jwt_secret_change_me"


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    public_base_url: str
    database_url: str
    jwt_secret: str
    jwt_ttl_seconds: int
    cookie_secure: str
    auto_create_tables: bool
    log_level: str


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    cookie_secure = (os.getenv("COOKIE_SECURE") or "auto").strip().lower()
    if cookie_secure not in {"auto", "true", "false"}:
        cookie_secure = "auto"

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./linkpage.db"),
        jwt_secret=os.getenv("JWT_SECRET") or DEV_JWT_SECRET,
        jwt_ttl_seconds=_int(os.getenv("JWT_TTL_SECONDS", "2592000"), 2592000),
        cookie_secure=cookie_secure,
        auto_create_tables=_bool(os.getenv("AUTO_CREATE_TABLES"), True),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
