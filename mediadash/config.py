from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central application configuration parsed from environment variables."""

    api_host: str = Field("0.0.0.0", description="Host interface for the API server.")
    api_port: int = Field(5000, description="Port for the API server.")
    api_token: str = Field("changeme", description="Operator token required to open a dashboard session.")

    database_url: str = Field("sqlite:///./data/mediadash.db", description="SQL database URL.")
    redis_url: str = Field("redis://localhost:6379/0", description="Redis connection for RQ.")

    session_cookie_name: str = Field("mediadash_session", description="Name of the dashboard session cookie.")
    session_ttl_seconds: Annotated[int, Field(ge=60)] = Field(
        7 * 24 * 3600, description="Lifetime of a dashboard session."
    )
    session_cookie_secure: bool = Field(False, description="Only send the session cookie over HTTPS.")

    youtube_api_key: str = Field("", description="YouTube Data API key. Empty disables YouTube search.")
    youtube_api_url: str = Field("https://www.googleapis.com/youtube/v3")
    spotify_client_id: str = Field("", description="Spotify client id. Empty disables Spotify search.")
    spotify_client_secret: str = Field("")
    spotify_token_url: str = Field("https://accounts.spotify.com/api/token")
    spotify_api_url: str = Field("https://api.spotify.com/v1")

    download_path: Path = Field(Path("./downloads"), description="Base path for downloaded files.")
    max_file_size: str = Field("900MB", description="Largest file a download may produce.")
    download_timeout_seconds: Optional[int] = Field(
        300,
        description="Maximum number of seconds a download job may run before timing out. Set to 0 to disable.",
    )
    cleanup_days: Annotated[int, Field(ge=1)] = Field(
        30, description="Completed downloads older than this are eligible for cleanup."
    )
    default_request_limit: Annotated[int, Field(ge=1)] = Field(
        10000, description="Request limit applied to API keys created without one."
    )

    search_timeout_seconds: float = Field(10.0, description="Timeout for calls to platform search APIs.")
    max_results_per_platform: Annotated[int, Field(ge=1)] = Field(20)
    download_step_delay_seconds: float = Field(
        1.0, description="Delay between simulated progress steps of a download job."
    )

    log_level: str = Field("INFO", description="Level passed to logging.basicConfig at the entry points.")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @validator("download_path", pre=True)
    def expand_download_path(cls, value: Path) -> Path:
        """Expand user and environment variables for the download path."""
        return Path(value).expanduser().resolve()

    @validator("download_timeout_seconds", pre=True)
    def normalize_download_timeout(cls, value: Optional[int]) -> Optional[int]:
        """Interpret falsy values as disabling timeouts."""
        if value in (None, "", "None", 0, "0"):
            return None
        return int(value)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance to avoid reparsing the environment."""
    return Settings()


settings = get_settings()
