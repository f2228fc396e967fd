"""
Client layer: API access, page controllers, cards and the admin console.

Presentation-agnostic; the Streamlit app in `uniarchive.ui` renders it.
"""
from .api import ArchiveClient
from .config import ClientConfig, ClientSettings
from .errors import ApiError, QueryCancelled

__all__ = ["ArchiveClient", "ClientConfig", "ClientSettings", "ApiError", "QueryCancelled"]
