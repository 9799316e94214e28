"""
Report freshness poll sources.

- ``reports``: backend verdict on report changes in the last hours, with a
  per-report breakdown.
- ``system``: the cross-cutting system update slice.
- ``*_feed``: live row counts of individual reports over a date range.
"""

from typing import Any, Dict, Optional, Tuple

from badgewatch.core.config import settings
from badgewatch.fetchers.base import BaseSnapshotFetcher, FetcherContext
from badgewatch.fetchers.registry import FetcherRegistry
from badgewatch.schemas.common import CategoryKey, DiffPolicy, SYSTEM_TARGET
from badgewatch.schemas.snapshots import CountSnapshot, WindowSnapshot, WindowSubItem


@FetcherRegistry.register("reports")
class ReportsUpdateFetcher(BaseSnapshotFetcher):
    category = CategoryKey.REPORTS.value
    policy = DiffPolicy.WINDOW
    action = "check_reports_updates"
    interval_setting = "REPORTS_POLL_INTERVAL"

    def params(self) -> Dict[str, Any]:
        return {"hours": settings.REPORTS_LOOKBACK_HOURS}

    def parse(self, data: Any) -> WindowSnapshot:
        data = self._require_dict(data)
        has_updates = self._bool(data, "hasUpdates")
        count = self._int(data, "count", "updateCount")

        sub_items = {}
        breakdown = data.get("reportUpdates") or {}
        for name, entry in self._require_dict(breakdown).items():
            entry = self._require_dict(entry)
            sub_items[name] = WindowSubItem(
                has_updates=self._bool(entry, "hasUpdates"),
                count=self._int(entry, "count")
            )

        # The headline count already includes the breakdown
        covered = sum(sub.count for sub in sub_items.values())
        flagged_below = any(sub.has_updates for sub in sub_items.values())
        return WindowSnapshot(
            has_updates=has_updates and (count > covered or not flagged_below),
            count=max(0, count - covered),
            sub_items=sub_items
        )


@FetcherRegistry.register("system")
class SystemUpdateFetcher(BaseSnapshotFetcher):
    category = SYSTEM_TARGET
    policy = DiffPolicy.WINDOW
    action = "check_system_updates"
    interval_setting = "SYSTEM_POLL_INTERVAL"

    def params(self) -> Dict[str, Any]:
        return {"hours": settings.REPORTS_LOOKBACK_HOURS}

    def parse(self, data: Any) -> WindowSnapshot:
        data = self._require_dict(data)
        return WindowSnapshot(
            has_updates=self._bool(data, "hasUpdates"),
            count=self._int(data, "updateCount", "count")
        )


class ReportFeedFetcher(BaseSnapshotFetcher):
    """
    Row count of one report over its live date range.

    The range rolls over at midnight; the engine then resets this source's
    cursor so the first count of the new day is a baseline.
    """

    category = CategoryKey.REPORTS.value
    policy = DiffPolicy.COUNT
    action = "get_report_data"
    interval_setting = "REPORT_FEED_POLL_INTERVAL"
    # rows already in the report are not notifications
    count_baseline = False

    report_type: str = ""
    include_previous_day: bool = False
    alert: Optional[Tuple[str, str]] = None

    def __init__(self, context: Optional[FetcherContext] = None, interval_seconds: Optional[float] = None):
        super().__init__(context, interval_seconds)
        self.context.date_ranges.track(self.name, self.include_previous_day)

    @property
    def date_range(self):
        return self.context.date_ranges.get(self.name)

    def params(self) -> Dict[str, Any]:
        return {
            "report_type": self.report_type,
            "check_for_updates": True,
            **self.date_range.as_params()
        }

    def parse(self, data: Any) -> CountSnapshot:
        if isinstance(data, dict):
            rows = data.get("all_logs", [])
        else:
            rows = data if data is not None else []
        return CountSnapshot(count=len(self._require_list(rows)))

    def describe_alert(self, count: int) -> Optional[Tuple[str, str]]:
        return self.alert


@FetcherRegistry.register("sales_feed")
class SalesFeedFetcher(ReportFeedFetcher):
    report_type = "sales"
    sub_item = "Sales Report"
    alert = ("New Sales Transaction", "A new POS transaction has been recorded")


@FetcherRegistry.register("cashier_feed")
class CashierFeedFetcher(ReportFeedFetcher):
    report_type = "cashier_performance"
    sub_item = "Cashier Performance Report"
    alert = ("Cashier Activity Update", "New cashier performance data is available")


@FetcherRegistry.register("login_feed")
class LoginLogsFeedFetcher(ReportFeedFetcher):
    report_type = "login_logs"
    sub_item = "Login Logs Report"
    # late-night logins stay visible after midnight
    include_previous_day = True
    alert = ("Login Activity Update", "New login/logout activity has been detected")
