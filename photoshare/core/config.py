"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_AUTO_END_MS = 3 * 60 * 1000
DEFAULT_SCHEDULER_INTERVAL_MS = 60 * 1000


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App Info
    app_name: str = "QR Photoshare API"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=5000, alias="PORT")
    workers: int = 1

    # Database
    data_dir: str = Field(default="./data", alias="DATA_DIR")
    db_file: str = "qr_photoshare.db"

    @property
    def database_url(self) -> str:
        """SQLite database URL."""
        db_path = Path(self.data_dir) / self.db_file
        return f"sqlite+aiosqlite:///{db_path}"

    # Uploaded media
    uploads_dir: str = Field(default="./uploads", alias="UPLOADS_DIR")
    max_image_size: int = 10 * 1024 * 1024
    max_video_size: int = 200 * 1024 * 1024
    preview_max_size: int = 1024
    preview_quality: int = 75

    # Public gallery links
    frontend_url: str = Field(default="http://localhost:3000", alias="FRONTEND_URL")

    # JWT Authentication
    jwt_secret_key: str = Field(default="dev_secret", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = Field(
        default=60 * 12,
        alias="JWT_EXPIRE_MINUTES",
    )

    # Root account seeded at startup
    admin_user: str = Field(default="admin", alias="ADMIN_USER")
    admin_pass: str = Field(default="admin", alias="ADMIN_PASS")

    # Event lifecycle
    event_auto_end_duration_ms: int = Field(
        default=DEFAULT_AUTO_END_MS,
        alias="EVENT_AUTO_END_DURATION_MS",
        description="How long a live event runs before it is ended automatically",
    )
    event_scheduler_interval_ms: int = Field(
        default=DEFAULT_SCHEDULER_INTERVAL_MS,
        alias="EVENT_SCHEDULER_INTERVAL_MS",
        description="Tick interval of the event status sweep",
    )
    enable_scheduler: bool = Field(default=True, alias="ENABLE_SCHEDULER")

    # Presence
    presence_ttl_seconds: float = Field(default=45.0, alias="PRESENCE_TTL_SECONDS")

    # File retry policy
    file_retry_max_attempts: int = 20
    file_retry_initial_delay: float = 0.15
    file_retry_max_delay: float = 2.0
    file_retry_timeout: float = 30.0

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    @field_validator("event_auto_end_duration_ms", mode="before")
    @classmethod
    def fallback_auto_end(cls, v: object) -> int:
        """Fall back to the default duration for empty or non-positive values."""
        try:
            parsed = int(str(v).strip())
        except (TypeError, ValueError):
            return DEFAULT_AUTO_END_MS
        return parsed if parsed > 0 else DEFAULT_AUTO_END_MS

    @field_validator("event_scheduler_interval_ms", mode="before")
    @classmethod
    def fallback_interval(cls, v: object) -> int:
        """Fall back to the default tick for empty or non-positive values."""
        try:
            parsed = int(str(v).strip())
        except (TypeError, ValueError):
            return DEFAULT_SCHEDULER_INTERVAL_MS
        return parsed if parsed > 0 else DEFAULT_SCHEDULER_INTERVAL_MS


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
