"""
Application configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./wadindex.db"

    # idGames dump database used for cross-referencing (optional)
    REFERENCE_DATABASE_URL: Optional[str] = None

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Indexing
    INDEX_ROOT: Optional[str] = None
    SCRATCH_DIR: Optional[str] = None  # None = system temp dir
    ARCHIVE_SUFFIX: str = ".zip"
    CONTAINER_SUFFIX: str = ".wad"
    MAX_FILES: Optional[int] = None


settings = Settings()
