"""
Warehouse stock alert poll source.

Thresholds come from the shared settings so a change on the settings
screen applies from the next poll on.
"""

from typing import Any, Dict, Optional, Tuple

from badgewatch.fetchers.base import BaseSnapshotFetcher, plural
from badgewatch.fetchers.registry import FetcherRegistry
from badgewatch.schemas.common import CategoryKey, DiffPolicy
from badgewatch.schemas.snapshots import CountSnapshot


@FetcherRegistry.register("warehouse")
class WarehouseAlertFetcher(BaseSnapshotFetcher):
    category = CategoryKey.WAREHOUSE.value
    policy = DiffPolicy.COUNT
    action = "get_warehouse_notifications"
    interval_setting = "WAREHOUSE_POLL_INTERVAL"

    # payload key -> sub-item, and the toggle that silences it
    ALERT_KINDS = {
        "lowStock": ("Low Stock", "lowStockAlerts"),
        "expiring": ("Expiring", "expiryAlerts"),
        "outOfStock": ("Out of Stock", None),
        "expired": ("Expired", None),
    }

    def params(self) -> Dict[str, Any]:
        shared = self.context.shared_settings
        return {
            "low_stock_threshold": shared.get("lowStockThreshold"),
            "expiry_warning_days": shared.get("expiryWarningDays"),
        }

    def parse(self, data: Any) -> CountSnapshot:
        data = self._require_dict(data)
        totals = self._require_dict(data.get("totals", {}))
        shared = self.context.shared_settings

        sub_counts = {}
        for key, (sub_item, toggle) in self.ALERT_KINDS.items():
            enabled = toggle is None or shared.get(toggle)
            sub_counts[sub_item] = self._int(totals, key) if enabled else 0
        return CountSnapshot(count=0, sub_counts=sub_counts)

    def describe_alert(self, count: int) -> Optional[Tuple[str, str]]:
        return "Inventory Alert", f"{count} new stock {plural(count, 'alert')} in the warehouse"


@FetcherRegistry.register("warehouse_sites")
class WarehouseSiteFetcher(WarehouseAlertFetcher):
    """
    Alert totals per warehouse, from the same payload's ``warehouses`` member.

    Each warehouse is a sub-item named after it. The stock-level alert for
    the same rows is raised by ``warehouse``, so this source stays silent.
    """

    category = CategoryKey.WAREHOUSE_SITES.value

    def parse(self, data: Any) -> CountSnapshot:
        data = self._require_dict(data)
        warehouses = data.get("warehouses") or {}
        if isinstance(warehouses, list):
            entries = [(entry.get("id"), entry) for entry in map(self._require_dict, warehouses)]
        else:
            entries = list(self._require_dict(warehouses).items())

        shared = self.context.shared_settings
        sub_counts = {}
        for warehouse_id, entry in entries:
            entry = self._require_dict(entry)
            name = entry.get("name") or f"Warehouse {warehouse_id}"
            sub_counts[str(name)] = sum(
                self._int(entry, key)
                for key, (_, toggle) in self.ALERT_KINDS.items()
                if toggle is None or shared.get(toggle)
            )
        return CountSnapshot(count=0, sub_counts=sub_counts)

    def describe_alert(self, count: int) -> Optional[Tuple[str, str]]:
        return None
