"""
BadgeWatch - Services Module

The engine lives in ``badgewatch.services.engine`` and is imported from
there; it depends on the fetchers, which in turn read from these services.
"""

from badgewatch.services.store import NotificationStore, DEFAULT_SUB_ITEMS, SYSTEM_LINKED
from badgewatch.services.detector import ChangeDetector, Detection, PollCursor
from badgewatch.services.scheduler import PollScheduler, PollJob
from badgewatch.services.date_range import DateRange, DateRangeTracker, roll_date_range
from badgewatch.services.debounce import Debouncer
from badgewatch.services.preferences import SharedSettings, PreferenceSync
from badgewatch.services.persistence import StateFile
from badgewatch.services.desktop import (
    DesktopNotifier,
    DesktopBackend,
    LogDesktopBackend,
    PermissionState
)

__all__ = [
    # Store
    "NotificationStore",
    "DEFAULT_SUB_ITEMS",
    "SYSTEM_LINKED",
    "StateFile",

    # Detection
    "ChangeDetector",
    "Detection",
    "PollCursor",

    # Scheduling
    "PollScheduler",
    "PollJob",
    "DateRange",
    "DateRangeTracker",
    "roll_date_range",

    # Preferences
    "Debouncer",
    "SharedSettings",
    "PreferenceSync",

    # Desktop alerts
    "DesktopNotifier",
    "DesktopBackend",
    "LogDesktopBackend",
    "PermissionState",
]
