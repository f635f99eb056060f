"""Configuration settings for the LiftForge gamification engine."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


# __file__ = <root>/src/liftforge/config.py
PACKAGE_ROOT = Path(__file__).parent
PROJECT_ROOT = PACKAGE_ROOT.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from LIFTFORGE_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LIFTFORGE_",
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["http://localhost:8081", "http://localhost:19006"]

    # Database
    database_path: Path | None = None

    # Week bucketing and daily caps use this zone when a workout has none
    default_timezone: str = "UTC"

    # Bearer tokens are minted by the auth provider with this shared secret
    jwt_secret_key: str = "change-me-in-production-liftforge-secret"
    jwt_algorithm: str = "HS256"

    def model_post_init(self, __context) -> None:
        """Set default database path after initialization."""
        if self.database_path is None:
            self.database_path = PROJECT_ROOT / "liftforge.db"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
