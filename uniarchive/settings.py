# uniarchive/settings.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field
from typing import List
from pathlib import Path


class Settings(BaseSettings):
    # Storage settings
    # sqlite is the default; STORAGE_BACKEND=json keeps everything in flat files
    storage_backend: str = "sqlite"
    db_url: str = "sqlite:///data/archive.db"
    json_data_dir: str = "data"

    # Uploaded PDFs are written here (local storage provider)
    upload_dir: str = "uploads"
    max_upload_mb: int = Field(
        default=50,
        description="Maximum accepted PDF size in megabytes",
    )

    # Create S1..S5 on startup when the semesters collection is empty
    seed_semesters: bool = True

    # Seconds to keep the /api/admin/stats payload around between writes
    stats_cache_ttl: int = 5

    # CORS settings
    allowed_origins: str = "http://localhost:5173,http://localhost:3000,http://localhost:8501"

    # Server
    host: str = "0.0.0.0"
    port: int = 5000

    model_config = ConfigDict(
        # Always load .env from the same folder as this settings.py
        env_file=str(Path(__file__).resolve().parent / ".env"),
        extra="ignore",
    )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def get_origins_list(self) -> List[str]:
        """Parse comma-separated origins into a list."""
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


_settings_instance = None

def get_settings() -> Settings:
    """Singleton pattern for settings."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
