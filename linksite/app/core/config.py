import json
import re
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_cors_origins(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, list):
        items = [str(v).strip() for v in raw]
        return [v for v in items if v]

    raw = str(raw).strip()
    if not raw or raw == "[]":
        return []
    if raw == "*":
        return ["*"]

    # Prefer JSON, but tolerate comma or whitespace separated hosts.
    if raw.startswith(("[", '"')):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items = [str(v).strip() for v in parsed]
            return [v for v in items if v]
        if isinstance(parsed, str):
            raw = parsed.strip()
            if not raw:
                return []

    origins: list[str] = []
    for part in (p for p in re.split(r"[,\s]+", raw) if p):
        if part == "*":
            return ["*"]
        if "://" in part:
            origins.append(part)
            continue
        # Browsers send the scheme in the Origin header.
        origins.append(f"http://{part}")
        origins.append(f"https://{part}")

    return list(dict.fromkeys(origins))


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Debug mode - enables detailed error responses
    debug: bool = False

    # Development mode - disables rate limiting and public cache headers
    dev_mode: bool = False

    # SQLite by default; PostgreSQL via postgresql+asyncpg://...
    database_url: str = "sqlite+aiosqlite:///./linksite.db"
    db_pool_size: int = 10
    db_max_overflow: int = 5

    # Rate limiting settings, one pair per bucket
    rate_limit_auth_max_requests: int = 5
    rate_limit_auth_window_seconds: int = 3600
    rate_limit_api_max_requests: int = 30
    rate_limit_api_window_seconds: int = 60
    rate_limit_max_entries: int = 500  # per bucket cache

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    # Session tokens
    token_bytes: int = 32

    # Public profile defaults
    default_profile_image: str = "/default-profile.png"

    # Use NoDecode so a bare host (e.g. "links.example.com") does not crash
    # JSON parsing at startup.
    cors_origins: Annotated[list[str], NoDecode] = ["*"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def decode_cors_origins(cls, v: Any) -> list[str]:
        return _parse_cors_origins(v)

    @field_validator(
        "rate_limit_auth_max_requests",
        "rate_limit_auth_window_seconds",
        "rate_limit_api_max_requests",
        "rate_limit_api_window_seconds",
        "rate_limit_max_entries",
    )
    @classmethod
    def validate_rate_limit_positive(cls, v: int) -> int:
        """Validate rate limit values are positive."""
        if v < 1:
            raise ValueError("Rate limit values must be at least 1")
        return v

    @field_validator("token_bytes")
    @classmethod
    def validate_token_bytes(cls, v: int) -> int:
        if v < 16:
            raise ValueError("token_bytes must be at least 16")
        return v

    @property
    def is_sqlite(self) -> bool:
        return "sqlite" in self.database_url.lower()

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
