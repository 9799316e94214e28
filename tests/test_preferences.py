import asyncio

import pytest

from badgewatch.core.config import settings
from badgewatch.core.exceptions import ValidationError
from badgewatch.schemas import PreferencesUpdate
from badgewatch.services.preferences import PreferenceSync, SharedSettings


class TestSharedSettings:
    def test_defaults(self):
        shared = SharedSettings()

        assert shared.get("lowStockAlerts") is True
        assert shared.get("lowStockThreshold") == settings.DEFAULT_LOW_STOCK_THRESHOLD
        assert shared.get("expiryWarningDays") == settings.DEFAULT_EXPIRY_WARNING_DAYS

    def test_unchanged_value_is_not_written(self):
        shared = SharedSettings()
        seen = []
        shared.subscribe(lambda key, value: seen.append((key, value)))

        assert shared.update_setting("expiryAlerts", True) is False
        assert shared.update_setting("expiryAlerts", False) is True

        assert shared.writes == 1
        assert seen == [("expiryAlerts", False)]

    def test_blank_numbers_fall_back_to_defaults(self):
        shared = SharedSettings(lowStockThreshold=3, expiryWarningDays=7)

        shared.update_setting("lowStockThreshold", "")
        shared.update_setting("expiryWarningDays", None)

        assert shared.get("lowStockThreshold") == 10
        assert shared.get("expiryWarningDays") == 30

    def test_numeric_strings_are_coerced(self):
        shared = SharedSettings()
        shared.update_setting("lowStockThreshold", "25")
        assert shared.get("lowStockThreshold") == 25

    def test_invalid_values(self):
        shared = SharedSettings()

        with pytest.raises(ValidationError):
            shared.update_setting("lowStockThreshold", "lots")
        with pytest.raises(ValidationError):
            shared.update_setting("lowStockThreshold", -1)
        with pytest.raises(ValidationError):
            shared.update_setting("theme", "dark")


@pytest.mark.anyio
class TestPreferenceSync:
    async def test_burst_of_toggles_writes_once(self):
        shared = SharedSettings()
        sync = PreferenceSync(shared, delay=0.02)

        sync.toggle("low_stock", False)
        sync.toggle("expiry_alerts", False)
        sync.toggle("expiry_alerts", True)
        assert sync.pending
        assert shared.writes == 0

        await asyncio.sleep(0.08)

        assert shared.get("lowStockAlerts") is False
        assert shared.get("expiryAlerts") is True
        assert shared.writes == 1

    async def test_toggling_back_writes_nothing(self):
        shared = SharedSettings()
        sync = PreferenceSync(shared, delay=0.02)

        sync.toggle("movement_alerts", False)
        sync.toggle("movement_alerts", True)
        await asyncio.sleep(0.08)

        assert shared.writes == 0

    async def test_update_form(self):
        shared = SharedSettings()
        sync = PreferenceSync(shared, delay=10)

        sync.update(PreferencesUpdate(low_stock=False, low_stock_threshold="15", expiry_warning_days=""))

        assert shared.get("lowStockThreshold") == 15
        assert shared.get("expiryWarningDays") == 30
        assert shared.get("lowStockAlerts") is True
        assert sync.toggles.low_stock is False

        assert sync.flush() is True
        assert shared.get("lowStockAlerts") is False

    async def test_close_drops_pending_sync(self):
        shared = SharedSettings()
        sync = PreferenceSync(shared, delay=0.02)

        sync.toggle("low_stock", False)
        sync.close()
        await asyncio.sleep(0.05)

        assert shared.get("lowStockAlerts") is True

    async def test_unknown_toggle(self):
        sync = PreferenceSync(SharedSettings(), delay=0.02)

        with pytest.raises(ValidationError):
            sync.toggle("dark_mode", True)
