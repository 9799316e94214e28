"""
BadgeWatch - Preference Schemas
User notification toggles and the shared settings they feed
"""

from typing import Optional, Union
from pydantic import BaseModel, Field


class NotificationToggles(BaseModel):
    """Toggles as the store settings screen keeps them."""
    low_stock: bool = True
    expiry_alerts: bool = True
    movement_alerts: bool = True


class PreferencesUpdate(BaseModel):
    # Toggles
    low_stock: Optional[bool] = None
    expiry_alerts: Optional[bool] = None
    movement_alerts: Optional[bool] = None

    # Thresholds (blank falls back to the default)
    low_stock_threshold: Optional[Union[int, str]] = None
    expiry_warning_days: Optional[Union[int, str]] = None


class SharedSettingsResponse(BaseModel):
    lowStockAlerts: bool
    expiryAlerts: bool
    movementAlerts: bool
    lowStockThreshold: int = Field(ge=0)
    expiryWarningDays: int = Field(ge=0)


class PreferencesResponse(BaseModel):
    success: bool = True
    toggles: NotificationToggles
    settings: SharedSettingsResponse
    pending: bool = False
