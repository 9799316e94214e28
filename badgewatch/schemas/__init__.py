"""
BadgeWatch - Schemas Package
Centralized exports for all Pydantic schemas
"""

# Common (Enums and Base Models)
from .common import (
    # Enums
    CategoryKey,
    DiffPolicy,
    PollState,
    PollOutcome,
    SYSTEM_TARGET,
    # Base Responses
    BaseResponse,
    ErrorResponse,
)

# Notifications
from .notifications import (
    SubItemState,
    CategoryState,
    SystemUpdateState,
    NotificationState,
    SubItemDelta,
    Delta,
    SystemDelta,
    CategoryResponse,
    NotificationTreeResponse,
    RefreshResponse,
)

# Snapshots
from .snapshots import (
    TimestampedItem,
    TimestampSnapshot,
    CountSnapshot,
    WindowSubItem,
    WindowSnapshot,
    Snapshot,
)

# Preferences
from .preferences import (
    NotificationToggles,
    PreferencesUpdate,
    SharedSettingsResponse,
    PreferencesResponse,
)

__all__ = [
    # Common
    "CategoryKey",
    "DiffPolicy",
    "PollState",
    "PollOutcome",
    "SYSTEM_TARGET",
    "BaseResponse",
    "ErrorResponse",
    # Notifications
    "SubItemState",
    "CategoryState",
    "SystemUpdateState",
    "NotificationState",
    "SubItemDelta",
    "Delta",
    "SystemDelta",
    "CategoryResponse",
    "NotificationTreeResponse",
    "RefreshResponse",
    # Snapshots
    "TimestampedItem",
    "TimestampSnapshot",
    "CountSnapshot",
    "WindowSubItem",
    "WindowSnapshot",
    "Snapshot",
    # Preferences
    "NotificationToggles",
    "PreferencesUpdate",
    "SharedSettingsResponse",
    "PreferencesResponse",
]
