"""Core configuration and the error taxonomy. Import authstarr.core.database for the engine and sessions."""

from authstarr.core.config import get_settings, settings
from authstarr.core.errors import AuthStarrError

__all__ = ["AuthStarrError", "get_settings", "settings"]
