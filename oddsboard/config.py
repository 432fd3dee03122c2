"""Application configuration using Pydantic settings."""

from datetime import date, datetime
from enum import Enum
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict

MELB_TZ = ZoneInfo("Australia/Melbourne")

# Local scraper backend bundled with the desktop app
LOCAL_API_URL = "http://localhost:5000"


def melb_now() -> datetime:
    """Current time in Melbourne (AEDT/AEST automatically)."""
    return datetime.now(MELB_TZ)


def melb_now_naive() -> datetime:
    """Current time in Melbourne as naive datetime (for SQLAlchemy defaults)."""
    return melb_now().replace(tzinfo=None)


def melb_today() -> date:
    """Today's date in Melbourne timezone."""
    return melb_now().date()


class OddsField(str, Enum):
    """Scraped price field that becomes the canonical horse odds.

    The scraper emits several fixed prices per runner and nothing in the
    payload says which one the board should show, so the choice is explicit
    configuration shared by ingestion and export.
    """

    WIN_FIXED = "winFixed"
    PLACE_FIXED = "placeFixed"

    @property
    def label(self) -> str:
        return "Win" if self is OddsField.WIN_FIXED else "Place"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ODDSBOARD_",
        extra="ignore",
    )

    # Scraper backend
    api_url: str = LOCAL_API_URL
    request_timeout: float = 300.0  # full-day scrapes are slow

    # Ingestion
    odds_field: OddsField = OddsField.WIN_FIXED
    track_movement: bool = True

    # Refresh
    default_interval_minutes: int = 5
    winners_interval_minutes: int = 5  # 0 disables the winners poll

    # Preferences database
    db_path: Path = Path("./data/oddsboard.db")

    # App
    debug: bool = False
    log_level: str = "INFO"
    disable_background: bool = False

    @property
    def database_url(self) -> str:
        """SQLite database URL for SQLAlchemy."""
        return f"sqlite+aiosqlite:///{self.db_path}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Export for convenience
settings = get_settings()
