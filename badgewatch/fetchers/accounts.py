"""
User and supplier account poll sources.
"""

from typing import Any

from badgewatch.fetchers.base import BaseSnapshotFetcher
from badgewatch.fetchers.registry import FetcherRegistry
from badgewatch.schemas.common import CategoryKey, DiffPolicy
from badgewatch.schemas.snapshots import CountSnapshot


class AccountAlertFetcher(BaseSnapshotFetcher):
    """Pending approvals and inactive accounts, one sub-item each."""

    policy = DiffPolicy.COUNT
    interval_setting = "USERS_POLL_INTERVAL"

    # payload key -> sub-item
    FIELDS: dict = {}

    def parse(self, data: Any) -> CountSnapshot:
        data = self._require_dict(data)
        return CountSnapshot(
            count=0,
            sub_counts={sub_item: self._int(data, key) for key, sub_item in self.FIELDS.items()}
        )


@FetcherRegistry.register("users")
class UserAlertFetcher(AccountAlertFetcher):
    category = CategoryKey.USERS.value
    action = "get_user_alerts"
    FIELDS = {
        "pendingApprovals": "Pending Approvals",
        "inactiveUsers": "Inactive Users",
    }


@FetcherRegistry.register("suppliers")
class SupplierAlertFetcher(AccountAlertFetcher):
    category = CategoryKey.SUPPLIERS.value
    action = "get_supplier_alerts"
    FIELDS = {
        "pendingApprovals": "Pending Approvals",
        "inactiveSuppliers": "Inactive Suppliers",
    }
