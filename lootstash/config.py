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

    DATABASE_URL: str = "sqlite:///./dev.db"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Source files
    CATALOG_PATH: str = "catalogs/d2"

    # Blob storage settings
    STORAGE_PROVIDER: str = "memory"
    LOCAL_STORAGE_PATH: str = "./storage"
    PUBLIC_URL_BASE: str = "http://localhost:8000/static"
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None
    SUPABASE_BUCKET: str = "d2-items"

    # Remote icon source
    ICON_BASE_URL: str = "https://diablo2.io"
    ICON_REQUESTS_PER_SECOND: float = 2.0
    ICON_TIMEOUT_SECONDS: int = 30
    ICON_COOKIES: Optional[str] = None

    # Import runs
    RUN_TIMEOUT_SECONDS: int = 600

    # Admin API
    ADMIN_API_KEY: Optional[str] = None


settings = Settings()
