"""
Activity poll sources.

- ``logs``: login activity is a plain yes/no signal, so the badge shows a
  flag and never a number.
- ``system_activity``: recent store operations (product entries, stock out,
  POS sales, ...), one backend action per kind, each a sub-item.
"""

import asyncio
from typing import Any, Dict, Optional, Tuple

from badgewatch.core.backend import BackendClient
from badgewatch.core.config import settings
from badgewatch.core.exceptions import FetchError
from badgewatch.fetchers.base import BaseSnapshotFetcher, plural
from badgewatch.fetchers.registry import FetcherRegistry
from badgewatch.schemas.common import CategoryKey, DiffPolicy
from badgewatch.schemas.snapshots import WindowSnapshot, WindowSubItem


@FetcherRegistry.register("logs")
class LogActivityFetcher(BaseSnapshotFetcher):
    category = CategoryKey.LOGS.value
    policy = DiffPolicy.WINDOW
    action = "check_login_activity"
    sub_item = None
    interval_setting = "LOGS_POLL_INTERVAL"

    def params(self) -> Dict[str, Any]:
        return {"hours": settings.REPORTS_LOOKBACK_HOURS}

    def parse(self, data: Any) -> WindowSnapshot:
        data = self._require_dict(data)
        return WindowSnapshot(has_updates=self._bool(data, "hasUpdates", "has_new_data"))


@FetcherRegistry.register("system_activity")
class SystemActivityFetcher(BaseSnapshotFetcher):
    """
    Counts of store operations in the lookback window.

    The kinds are asked for concurrently; if any call fails the whole poll
    fails and the badge keeps its previous state.
    """

    category = CategoryKey.SYSTEM_ACTIVITY.value
    policy = DiffPolicy.WINDOW
    action = "get_recent_activities"
    interval_setting = "SYSTEM_ACTIVITY_POLL_INTERVAL"

    # backend action -> sub-item
    ACTIVITIES = {
        "get_recent_product_entries": "Product Entry",
        "get_recent_stock_out": "Stock Out",
        "get_inventory_balance_changes": "Inventory Balance",
        "get_cashier_activities": "Cashier Report",
        "get_sales_activities": "Sales Report",
        "get_pos_activities": "POS Activity",
    }

    def params(self) -> Dict[str, Any]:
        return {"hours": settings.REPORTS_LOOKBACK_HOURS}

    async def fetch(self, client: BackendClient):
        actions = list(self.ACTIVITIES)
        results = await asyncio.gather(
            *(client.call(action, self.params(), endpoint=self.endpoint()) for action in actions),
            return_exceptions=True
        )
        for result in results:
            if isinstance(result, FetchError):
                raise result
            if isinstance(result, Exception):
                raise FetchError(f"System activity check failed: {result}", action=self.action) from result
            if isinstance(result, BaseException):
                raise result

        return self._parse_checked(dict(zip(actions, results)))

    def parse(self, data: Any) -> WindowSnapshot:
        data = self._require_dict(data)
        sub_items = {}
        for action, sub_item in self.ACTIVITIES.items():
            entry = data.get(action)
            entry = self._require_dict(entry) if entry is not None else {}
            count = self._int(entry, "count")
            sub_items[sub_item] = WindowSubItem(has_updates=count > 0, count=count)
        return WindowSnapshot(has_updates=False, sub_items=sub_items)

    def describe_alert(self, count: int) -> Optional[Tuple[str, str]]:
        return "Store Activity", f"{count} new store {plural(count, 'activity', 'activities')} recorded"
