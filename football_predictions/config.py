"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str

    # API-Football (API-Sports direct)
    API_FOOTBALL_KEY: str
    API_FOOTBALL_BASE_URL: str = "https://v3.football.api-sports.io"
    API_TIMEOUT_SECONDS: float = 30.0

    # Ingestion
    CURRENT_SEASON: Optional[int] = None  # Defaults to the current UTC year
    SYNC_LEAGUE_IDS: str = ""  # Comma-separated API league ids; empty = all active
    FIXTURE_WINDOW_DAYS: int = 30
    LEAGUE_DELAY_SECONDS: float = 1.0  # Pause between leagues (source quota)

    # Predictions
    PREDICTION_HORIZON_HOURS: int = 48

    # Scheduler
    INGESTION_INTERVAL_MINUTES: int = 60
    PREDICTION_INTERVAL_MINUTES: int = 120

    # Prometheus /metrics port for the scheduler process; 0 disables
    METRICS_PORT: int = 9100

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @field_validator("DATABASE_URL", "API_FOOTBALL_KEY")
    @classmethod
    def _require_non_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must be set to a non-empty value")
        return value.strip()

    @field_validator("SYNC_LEAGUE_IDS")
    @classmethod
    def _check_league_ids(cls, value: str) -> str:
        for part in value.split(","):
            if part.strip() and not part.strip().isdigit():
                raise ValueError(
                    f"invalid league id {part.strip()!r}, expected comma-separated integers"
                )
        return value

    def sync_league_ids(self) -> list[int]:
        """Parse SYNC_LEAGUE_IDS into a list of API league ids."""
        return [int(part) for part in self.SYNC_LEAGUE_IDS.split(",") if part.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
