import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Project Paths
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = Path(
        os.getenv("TUNEVAULT_DATA_DIR", str(BASE_DIR.parent / "data"))
    )

    # Database
    DB_NAME: str = "tunevault.db"
    DB_BACKUP_RETENTION: int = 5

    @property
    def DB_PATH(self) -> Path:
        return self.DATA_DIR / self.DB_NAME

    @property
    def DB_URL(self) -> str:
        # Use forward slashes so Windows paths work in the URL (no backslash escapes)
        path = self.DB_PATH.resolve().as_posix()
        return f"sqlite+aiosqlite:///{path}"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_RETENTION: str = "10 days"
    LOG_ROTATION: str = "10 MB"

    # Performance & Debugging
    DB_ECHO: bool = False  # Enable SQLAlchemy query logging

    # Collection cache
    COLLECTION_CACHE_KEY: str = "music_collection.json"
    COLLECTION_CACHE_TTL: int = 5 * 365 * 24 * 60 * 60  # 5 years
    CLIENT_CACHE_DAYS: int = 90

    @property
    def BLOB_CACHE_DIR(self) -> Path:
        return self.DATA_DIR / "cache"

    # Mutex
    MUTEX_KEY_BASE: int = 0xA5E63947  # arbitrarily selected 32-bit base value

    @property
    def LOCK_DIR(self) -> Path:
        return self.DATA_DIR / "locks"


settings = Settings()

# Ensure data directory exists
settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
