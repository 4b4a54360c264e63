"""Application settings with environment variable support."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Compute base_dir at module level
_BASE_DIR = Path(__file__).parent.parent.parent.resolve()


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FH_",  # FH_DATABASE_URL, FH_FETCH_TIMEOUT_SECONDS, etc.
        extra="ignore",
    )

    # Paths
    base_dir: Path = _BASE_DIR
    data_dir: Path = _BASE_DIR / "data"
    sources_file: Path = _BASE_DIR / "config" / "sources.json"

    # Database
    database_url: str = f"sqlite:///{_BASE_DIR / 'data' / 'feedhub.db'}"
    storage_max_retries: int = Field(3, ge=1)

    # Crawling
    fetch_timeout_seconds: float = Field(10.0, gt=0)
    crawl_max_concurrency: int = Field(5, ge=1)
    crawl_interval_minutes: int = Field(30, ge=1)
    user_agent: str = "FeedHubBot/0.1 (+https://github.com/feedhub/feedhub)"

    # Sources
    source_removal_policy: Literal["retain", "cascade"] = "retain"

    # Read API
    page_size_default: int = Field(12, ge=1)
    page_size_max: int = Field(100, ge=1)
    trend_limit: int = Field(4, ge=1)

    # Logging
    log_level: str = "INFO"
    log_json: bool = False


settings = Settings()
