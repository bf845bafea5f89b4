"""Application settings and configuration.

This module defines all configuration options for Travel Threads. Settings are
loaded from environment variables (or a ``.env`` file) with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files. Tests
    build their own instances and hand them to a ``ServiceContext``.
    """

    # Application metadata
    app_name: str = Field(default="Travel Threads", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Document store selection
    store_backend: Literal["sql", "firestore"] = Field(default="sql", alias="STORE_BACKEND")

    # SQL document store (async SQLAlchemy URL)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./travel_threads.db",
        alias="DATABASE_URL",
    )
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Firestore document store
    firestore_project: str | None = Field(default=None, alias="FIRESTORE_PROJECT")
    firestore_database: str | None = Field(default=None, alias="FIRESTORE_DATABASE")
    firestore_batch_limit: int = Field(default=500, alias="FIRESTORE_BATCH_LIMIT")

    # Security and session tokens
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    login_max_failures: int = Field(default=5, alias="LOGIN_MAX_FAILURES")
    login_lockout_seconds: int = Field(default=900, alias="LOGIN_LOCKOUT_SECONDS")
    min_password_length: int = Field(default=6, alias="MIN_PASSWORD_LENGTH")

    # Media storage
    storage_backend: Literal["memory", "s3"] = Field(default="memory", alias="STORAGE_BACKEND")
    s3_bucket: str | None = Field(default=None, alias="S3_BUCKET")
    s3_region: str | None = Field(default=None, alias="S3_REGION")
    s3_endpoint_url: str | None = Field(default=None, alias="S3_ENDPOINT_URL")
    s3_public_base_url: str | None = Field(default=None, alias="S3_PUBLIC_BASE_URL")
    media_base_url: str = Field(
        default="http://localhost:8000/media",
        alias="MEDIA_BASE_URL",
    )

    # Place autocomplete (Google Places)
    places_api_key: str | None = Field(default=None, alias="PLACES_API_KEY")
    places_autocomplete_url: str = Field(
        default="https://maps.googleapis.com/maps/api/place/autocomplete/json",
        alias="PLACES_AUTOCOMPLETE_URL",
    )
    places_timeout_seconds: float = Field(default=5.0, alias="PLACES_TIMEOUT_SECONDS")

    # Feed and listing limits
    feed_page_size: int = Field(default=10, alias="FEED_PAGE_SIZE")
    following_feed_limit: int = Field(default=50, alias="FOLLOWING_FEED_LIMIT")
    query_in_limit: int = Field(default=30, alias="QUERY_IN_LIMIT")
    notifications_page_size: int = Field(default=20, alias="NOTIFICATIONS_PAGE_SIZE")
    suggested_users_count: int = Field(default=5, alias="SUGGESTED_USERS_COUNT")
    admin_users_page_size: int = Field(default=50, alias="ADMIN_USERS_PAGE_SIZE")
    admin_logs_page_size: int = Field(default=100, alias="ADMIN_LOGS_PAGE_SIZE")
    preview_length: int = Field(default=100, alias="PREVIEW_LENGTH")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for Alembic.

        Returns:
            Database URL with the async driver swapped for its sync counterpart
        """
        url = self.database_url
        if url.startswith("sqlite+aiosqlite"):
            return url.replace("sqlite+aiosqlite", "sqlite", 1)
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url


settings = Settings()  # type: ignore[call-arg]
