"""Configuration management using Pydantic Settings"""

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

from quotesync.core.models import MergePolicy


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent.parent
    DB_PATH: Path = PROJECT_ROOT / "data" / "quotes.db"
    STORE_SCOPE: str = "quotes"

    # Remote source
    REMOTE_MODE: str = "simulated"  # "simulated" or "http"
    REMOTE_URL: str = "https://jsonplaceholder.typicode.com/posts"
    REMOTE_DEFAULT_CATEGORY: str = "Server"
    REMOTE_TIMEOUT: float = 10.0

    # Sync
    SYNC_ENABLED: bool = True
    SYNC_INTERVAL_SECONDS: float = 30.0
    MERGE_POLICY: MergePolicy = MergePolicy.LATEST_TIMESTAMP

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def DEFAULT_QUOTES(self) -> list[tuple[str, str]]:
        return [
            ("The best way to get started is to quit talking and begin doing.", "Motivation"),
            ("Success is not in what you have, but who you are.", "Success"),
            ("Your time is limited, so don't waste it living someone else's life.", "Life"),
        ]


settings = Settings()
