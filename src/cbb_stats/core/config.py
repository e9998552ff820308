"""
Configuration management for the CBB Stats service.

Uses Pydantic settings for type-safe configuration with environment variable support.
All settings can be overridden via environment variables.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All settings can be overridden via environment variables.
    For nested settings, use double underscore: CORS__ALLOW_ORIGINS="http://localhost:3000"
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # ==========================================================================
    # Application Metadata
    # ==========================================================================
    app_name: str = "CBB Stats API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = Field(default="development", description="development, staging, production")
    log_level: str = Field(default="INFO", description="Root log level for the CLI and API")

    # ==========================================================================
    # Database Configuration
    # ==========================================================================
    database_url: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection string",
    )
    database_pool_min_size: int = Field(default=2, ge=1, le=50)
    database_pool_size: int = Field(default=10, ge=1, le=50)

    # ==========================================================================
    # API Configuration
    # ==========================================================================
    api_prefix: str = "/api"

    # ==========================================================================
    # CORS Configuration
    # ==========================================================================
    cors_allow_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ],
        description="Allowed CORS origins. Set to ['*'] for development.",
    )
    cors_allow_methods: list[str] = ["GET", "HEAD", "OPTIONS"]
    cors_allow_headers: list[str] = ["Accept", "Accept-Encoding", "Content-Type"]
    cors_allow_credentials: bool = False
    cors_expose_headers: list[str] = ["X-Process-Time"]

    # ==========================================================================
    # Upstream Feeds (barttorvik.com)
    # ==========================================================================
    feed_base_url: str = "https://barttorvik.com"
    game_stats_path: str = Field(
        default="/{year}_all_advgames.json.gz",
        description="Gzipped per-game player stats, one JSON array per game line",
    )
    player_stats_path: str = Field(
        default="/getadvstats.php?year={year}&csv=1",
        description="Header-less CSV of season-level player stats",
    )
    team_results_path: str = Field(
        default="/{year}_team_results.json",
        description="Season team results as a JSON array of objects",
    )
    feed_timeout: float = Field(default=60.0, ge=1.0)
    feed_max_retries: int = Field(default=3, ge=1, le=10)
    feed_requests_per_minute: int = Field(default=30, ge=1)

    # ==========================================================================
    # Reporting
    # ==========================================================================
    current_season: int = 2026
    default_last_n_games: int = Field(default=10, ge=1)
    report_max_workers: int = Field(
        default=8,
        ge=1,
        le=64,
        description="Thread pool size for per-player rolling aggregation",
    )

    @computed_field
    @property
    def db_url(self) -> str:
        """Get the effective database URL."""
        return self.database_url or ""


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
