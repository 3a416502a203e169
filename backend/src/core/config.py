"""Application configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str
    db_pool_size: int = Field(default=10, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")

    # Auth - locally issued HS256 tokens
    jwt_secret_key: str = Field(min_length=16, validation_alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
    access_token_expire_hours: int = Field(
        default=12, ge=1, validation_alias="ACCESS_TOKEN_EXPIRE_HOURS",
    )

    # Edit locks
    lock_duration_seconds: int = Field(
        default=300, ge=1, validation_alias="LOCK_DURATION_SECONDS",
    )
    lock_refresh_interval_seconds: int = Field(
        default=60, ge=1, validation_alias="LOCK_REFRESH_INTERVAL_SECONDS",
    )
    # 0 disables the background sweep; lazy expiry always applies
    lock_sweep_interval_seconds: int = Field(
        default=0, ge=0, validation_alias="LOCK_SWEEP_INTERVAL_SECONDS",
    )

    # Search
    search_max_limit: int = Field(default=50, ge=1, validation_alias="SEARCH_MAX_LIMIT")
    search_snippet_length: int = Field(
        default=160, ge=20, validation_alias="SEARCH_SNIPPET_LENGTH",
    )

    # Notes
    # Upper bound is the notes.title column width
    max_title_length: int = Field(
        default=500, ge=1, le=500, validation_alias="MAX_TITLE_LENGTH",
    )
    max_tree_depth: int = Field(default=10_000, ge=1, validation_alias="MAX_TREE_DEPTH")
    backfill_on_startup: bool = Field(default=True, validation_alias="BACKFILL_ON_STARTUP")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:5173",
        validation_alias="CORS_ORIGINS",
    )

    @model_validator(mode="after")
    def validate_lock_timing(self) -> "Settings":
        """
        Require the client refresh cadence to be shorter than the lease.

        Otherwise an actively editing client loses its lock between refreshes.
        """
        if self.lock_refresh_interval_seconds >= self.lock_duration_seconds:
            raise ValueError(
                f"LOCK_REFRESH_INTERVAL_SECONDS ({self.lock_refresh_interval_seconds}) "
                f"must be shorter than LOCK_DURATION_SECONDS ({self.lock_duration_seconds}).",
            )
        return self

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
