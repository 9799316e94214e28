"""
BadgeWatch - Core Module
"""

from badgewatch.core.config import settings, get_settings, Settings
from badgewatch.core.backend import BackendClient
from badgewatch.core.exceptions import (
    BadgeWatchException,
    NotFoundError,
    ValidationError,
    FetchError,
    ParseError
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    "Settings",

    # Backend
    "BackendClient",

    # Exceptions
    "BadgeWatchException",
    "NotFoundError",
    "ValidationError",
    "FetchError",
    "ParseError",
]
