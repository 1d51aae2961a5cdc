# objsync/app/core/config.py
"""
Service configuration using pydantic-settings.

Security considerations:
- PBKDF2 parameters only affect newly hashed passwords; stored hashes keep
  the salt and iteration count they were created with
- CORS_ORIGINS parsed from comma-separated env var, never defaults to "*"
- Database URLs normalized for async drivers automatically
- Echo mode disabled by default
"""
from functools import lru_cache
from typing import List

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Strictly typed application settings.

    Priority for loading:
    1. Environment variables (highest priority)
    2. .env file (via pydantic-settings)
    3. Default values (lowest priority, dev-safe only)
    """

    # ─────────────────────────────────────────────────────────────
    # Application metadata
    # ─────────────────────────────────────────────────────────────
    PROJECT_NAME: str = "objsync"
    PROJECT_VERSION: str = "1.0.0"
    API_PREFIX: str = ""

    ENVIRONMENT: str = "development"

    # ─────────────────────────────────────────────────────────────
    # HTTP server
    # ─────────────────────────────────────────────────────────────
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # ─────────────────────────────────────────────────────────────
    # Password hashing (PBKDF2-HMAC)
    # ─────────────────────────────────────────────────────────────
    PBKDF2_ITERATIONS: int = 10000
    PBKDF2_SALT_LEN: int = 32
    PBKDF2_OUTPUT_LEN: int = 32
    PBKDF2_HASH_ALGO: str = "sha256"

    # ─────────────────────────────────────────────────────────────
    # Bearer tokens
    # The id half is the lookup key, the secret half is compared
    # in constant time. Both are random bytes.
    # ─────────────────────────────────────────────────────────────
    AUTH_TOKEN_ID_LEN: int = 16
    AUTH_TOKEN_LEN: int = 32
    AUTH_TOKEN_EXPIRY_SECONDS: int = 30 * 24 * 3600

    TOKEN_REAPER_ENABLED: bool = True
    TOKEN_REAPER_INTERVAL_SECONDS: float = 3600

    # ─────────────────────────────────────────────────────────────
    # Rate limiting
    # Per client address, token bucket refilled over the window
    # ─────────────────────────────────────────────────────────────
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_MAX: int = 1000
    RATE_LIMIT_WINDOW_SECONDS: float = 60

    # ─────────────────────────────────────────────────────────────
    # Database Configuration
    # Priority: DATABASE_URL env var → SQLite fallback for local dev
    #
    # Hosted providers hand out postgres:// URLs.
    # We normalize to postgresql+asyncpg:// for SQLAlchemy async.
    # ─────────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./objsync.db"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """
        Normalize database URLs for async SQLAlchemy compatibility.

        Conversions:
        - postgres://     → postgresql+asyncpg://
        - postgresql://   → postgresql+asyncpg://
        - sqlite:///      → sqlite+aiosqlite:///
        """
        if v is None:
            return "sqlite+aiosqlite:///./objsync.db"

        url = v.strip()

        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)

        if url.startswith("postgresql://") and "+asyncpg" not in url:
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)

        if url.startswith("sqlite:///") and "+aiosqlite" not in url:
            return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)

        return url

    # MUST be False in production to prevent SQL query exposure
    DATABASE_ECHO: bool = False

    # ─────────────────────────────────────────────────────────────
    # CORS Configuration
    # Parsed from comma-separated CORS_ORIGINS env var
    # Empty string → no CORS middleware at all
    # ─────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = ""

    @property
    def BACKEND_CORS_ORIGINS(self) -> List[str]:
        """
        Parse CORS_ORIGINS string into a list of allowed origins.

        Empty string returns empty list, NOT wildcard "*".
        """
        if not self.CORS_ORIGINS or not self.CORS_ORIGINS.strip():
            return []

        return [
            origin.strip()
            for origin in self.CORS_ORIGINS.split(",")
            if origin.strip()
        ]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        # Extra fields in .env are ignored (prevents config injection)
        extra="ignore",
    )

    @property
    def AUTH_TOKEN_EXPIRY_MS(self) -> int:
        return self.AUTH_TOKEN_EXPIRY_SECONDS * 1000

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() == "production"

    @model_validator(mode="after")
    def check_production_safety(self) -> "Settings":
        """Refuse settings that would leak SQL into production logs."""
        if self.is_production and self.DATABASE_ECHO:
            raise ValueError("DATABASE_ECHO must be disabled in production")
        return self

    @property
    def is_sqlite(self) -> bool:
        """Check if using SQLite database (local development)."""
        return "sqlite" in self.DATABASE_URL.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance.

    Using lru_cache ensures settings are only loaded once,
    providing consistent configuration across the application
    and avoiding repeated env var parsing.
    """
    return Settings()
