"""Core app configuration, database, and rate limiting."""

from app.core.config import get_settings, settings
from app.core.database import get_db
from app.core.rate_limit import limiter

__all__ = ["get_settings", "settings", "get_db", "limiter"]
