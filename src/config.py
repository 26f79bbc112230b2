"""Application configuration loaded from environment variables and .env file."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Dataset opened on startup (a folder holding the XML exports)
    DATASET_PATH: Optional[str] = None
    DATABASE_FILENAME: str = "ItemDatabase.sqlite"

    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Icon loading
    ICONS_DIR: str = "icons"
    ICON_EXTENSION: str = ".png"
    ICON_WORKERS: Optional[int] = None  # None = os.cpu_count()

    # Search
    SEARCH_RESULT_LIMIT: int = 500
    SEARCH_BATCH_SIZE: int = 100


settings = Settings()
