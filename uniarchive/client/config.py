# uniarchive/client/config.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import ConfigDict
from pydantic_settings import BaseSettings

PRODUCTION_API_URL = "https://archive-mi73.onrender.com"
LOCAL_API_URL = "http://localhost:5000"
LOCAL_HOSTNAMES = ("localhost", "127.0.0.1")

DEFAULT_ADMIN_PASSWORD = "admin123"


class ClientSettings(BaseSettings):
    # Explicit API base URL; wins over hostname detection
    api_base_url: Optional[str] = None
    timeout_seconds: float = 10.0
    # Plain client-side comparison, no server involvement
    admin_password: str = DEFAULT_ADMIN_PASSWORD

    model_config = ConfigDict(
        env_prefix="ARCHIVE_",
        env_file=str(Path(__file__).resolve().parent.parent / ".env"),
        extra="ignore",
    )


@dataclass(frozen=True)
class ClientConfig:
    """Immutable client configuration injected into every client object."""
    base_url: str
    timeout: float = 10.0
    admin_password: str = DEFAULT_ADMIN_PASSWORD

    @classmethod
    def resolve(
        cls,
        hostname: Optional[str] = None,
        settings: Optional[ClientSettings] = None,
    ) -> "ClientConfig":
        """
        Pick the API base URL.

        ARCHIVE_API_BASE_URL wins; otherwise a local hostname maps to the
        local API and anything else to the production deployment.
        """
        settings = settings or ClientSettings()
        if settings.api_base_url:
            base = settings.api_base_url
        elif (hostname or "localhost").split(":")[0] in LOCAL_HOSTNAMES:
            base = LOCAL_API_URL
        else:
            base = PRODUCTION_API_URL
        return cls(
            base_url=base.rstrip("/"),
            timeout=settings.timeout_seconds,
            admin_password=settings.admin_password,
        )

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"
