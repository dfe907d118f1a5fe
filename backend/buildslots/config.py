# backend/buildslots/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/buildslots.db"
    redis_url: str = "redis://localhost:6379/0"

    # Driver-level wait for a locked database / pool checkout
    db_timeout_seconds: float = 5.0
    log_level: str = "INFO"

    # Scheduling defaults for builders without a scheduling_settings row
    max_range_days: int = 90
    default_timezone: str = "UTC"
    default_min_notice_minutes: int = 60
    default_max_advance_days: int = 30
    default_buffer_minutes: int = 0

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # Relative sqlite paths are anchored at the project root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
