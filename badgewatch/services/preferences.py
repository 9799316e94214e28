"""
BadgeWatch - Preference Sync
Mirrors notification toggles into the shared settings without redundant writes
"""

from typing import Any, Callable, Dict, List, Optional
import logging

from badgewatch.core.config import settings
from badgewatch.core.exceptions import ValidationError
from badgewatch.schemas.preferences import (
    NotificationToggles,
    PreferencesUpdate,
    SharedSettingsResponse,
)
from badgewatch.services.debounce import Debouncer

logger = logging.getLogger(__name__)

SettingListener = Callable[[str, Any], None]


class SharedSettings:
    """
    Configuration shared by every surface of the dashboard.

    ``update_setting`` only writes (and only notifies listeners) when the
    value actually changes; ``writes`` counts effective writes.
    """

    NUMERIC_DEFAULTS = {
        "lowStockThreshold": settings.DEFAULT_LOW_STOCK_THRESHOLD,
        "expiryWarningDays": settings.DEFAULT_EXPIRY_WARNING_DAYS,
    }

    def __init__(self, **overrides: Any):
        self._values: Dict[str, Any] = {
            "lowStockAlerts": True,
            "expiryAlerts": True,
            "movementAlerts": True,
            **self.NUMERIC_DEFAULTS,
        }
        self._values.update(overrides)
        self._listeners: List[SettingListener] = []
        self.writes = 0

    def get(self, key: str) -> Any:
        return self._values[key]

    def as_response(self) -> SharedSettingsResponse:
        return SharedSettingsResponse(**self._values)

    def subscribe(self, listener: SettingListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def update_setting(self, key: str, value: Any) -> bool:
        """
        Set one setting.

        Blank numeric values fall back to their defaults.

        Returns:
            True if the stored value changed
        """
        if key not in self._values:
            raise ValidationError(f"Unknown setting '{key}'", field=key)

        if key in self.NUMERIC_DEFAULTS:
            value = self._coerce_number(key, value)

        if self._values[key] == value:
            return False

        self._values[key] = value
        self.writes += 1
        logger.info(f"Setting {key} updated to {value}")

        for listener in list(self._listeners):
            try:
                listener(key, value)
            except Exception as e:
                logger.error(f"Setting listener failed for {key}: {e}")
        return True

    def _coerce_number(self, key: str, value: Any) -> int:
        if value is None or (isinstance(value, str) and not value.strip()):
            return self.NUMERIC_DEFAULTS[key]
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"'{key}' must be a whole number", field=key)
        if number < 0:
            raise ValidationError(f"'{key}' must not be negative", field=key)
        return number


class PreferenceSync:
    """
    Debounced bridge from the notification toggles to ``SharedSettings``.

    A burst of toggles produces a single sync carrying the settled state.
    """

    TOGGLE_KEYS = {
        "low_stock": "lowStockAlerts",
        "expiry_alerts": "expiryAlerts",
        "movement_alerts": "movementAlerts",
    }

    def __init__(self, shared: SharedSettings, delay: float = None):
        self.shared = shared
        self.toggles = NotificationToggles(
            **{field: shared.get(key) for field, key in self.TOGGLE_KEYS.items()}
        )
        self._debouncer: Debouncer[NotificationToggles] = Debouncer(
            settings.SETTINGS_DEBOUNCE_SECONDS if delay is None else delay,
            self._sync
        )

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    def toggle(self, field: str, value: bool) -> None:
        if field not in self.TOGGLE_KEYS:
            raise ValidationError(f"Unknown notification toggle '{field}'", field=field)
        self.toggles = self.toggles.model_copy(update={field: bool(value)})
        self._debouncer.trigger(self.toggles)

    def update(self, request: PreferencesUpdate) -> None:
        """Apply a preferences form: toggles debounced, thresholds written now."""
        changes = request.model_dump(exclude_none=True)

        for field in self.TOGGLE_KEYS:
            if field in changes:
                self.toggle(field, changes[field])

        if "low_stock_threshold" in changes:
            self.shared.update_setting("lowStockThreshold", changes["low_stock_threshold"])
        if "expiry_warning_days" in changes:
            self.shared.update_setting("expiryWarningDays", changes["expiry_warning_days"])

    def flush(self) -> bool:
        return self._debouncer.flush()

    def close(self) -> None:
        self._debouncer.close()

    def _sync(self, toggles: Optional[NotificationToggles]) -> None:
        if toggles is None:
            return
        changed = [
            key for field, key in self.TOGGLE_KEYS.items()
            if self.shared.update_setting(key, getattr(toggles, field))
        ]
        logger.debug(f"Preference sync wrote {len(changed)} setting(s)")
