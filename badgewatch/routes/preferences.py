"""
BadgeWatch - Preferences Routes
Notification toggles and alert thresholds
"""

from fastapi import APIRouter, Depends

from badgewatch.schemas import PreferencesResponse, PreferencesUpdate
from badgewatch.services.engine import NotificationEngine, get_engine

router = APIRouter(prefix="/preferences", tags=["Preferences"])


def _preferences_response(engine: NotificationEngine) -> PreferencesResponse:
    sync = engine.preferences
    return PreferencesResponse(
        toggles=sync.toggles,
        settings=engine.shared_settings.as_response(),
        pending=sync.pending
    )


@router.get("", response_model=PreferencesResponse)
async def get_preferences(engine: NotificationEngine = Depends(get_engine)):
    return _preferences_response(engine)


@router.put("", response_model=PreferencesResponse)
async def update_preferences(
    data: PreferencesUpdate,
    engine: NotificationEngine = Depends(get_engine)
):
    """
    Update notification preferences.

    Toggles reach the shared settings after a short quiet period, so the
    response may still report ``pending: true``. Thresholds apply at once;
    a blank threshold falls back to its default.
    """
    engine.preferences.update(data)
    return _preferences_response(engine)
