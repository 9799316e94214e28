"""
Snapshot Fetchers Module

One fetcher per poll source. Each asks the backend for the current state of
a notification category and normalises it to a typed snapshot.

Poll sources:
- returns       (timestamp diff)  pending return requests
- reports       (window)          report freshness with per-report breakdown
- system        (window)          cross-cutting system update slice
- sales_feed, cashier_feed, login_feed (count diff) live report row counts
- warehouse     (count diff)      stock alerts
- warehouse_sites (count diff)    stock alerts per warehouse
- logs          (window)          login activity flag
- system_activity (window)        recent store operations by kind
- users, suppliers (count diff)   pending approvals / inactive accounts

Usage:
    from badgewatch.fetchers import FetcherRegistry, FetcherContext

    fetchers = FetcherRegistry.create_all(FetcherContext())
    snapshot = await fetchers["returns"].fetch(client)
"""

from badgewatch.fetchers.base import BaseSnapshotFetcher, FetcherContext
from badgewatch.fetchers.registry import FetcherRegistry

# Import fetchers to register them
from badgewatch.fetchers.returns import ReturnsFetcher
from badgewatch.fetchers.reports import (
    ReportsUpdateFetcher,
    SystemUpdateFetcher,
    ReportFeedFetcher,
    SalesFeedFetcher,
    CashierFeedFetcher,
    LoginLogsFeedFetcher,
)
from badgewatch.fetchers.warehouse import WarehouseAlertFetcher, WarehouseSiteFetcher
from badgewatch.fetchers.activity import LogActivityFetcher, SystemActivityFetcher
from badgewatch.fetchers.accounts import UserAlertFetcher, SupplierAlertFetcher

__all__ = [
    # Base classes
    "BaseSnapshotFetcher",
    "FetcherContext",

    # Registry
    "FetcherRegistry",

    # Fetchers
    "ReturnsFetcher",
    "ReportsUpdateFetcher",
    "SystemUpdateFetcher",
    "ReportFeedFetcher",
    "SalesFeedFetcher",
    "CashierFeedFetcher",
    "LoginLogsFeedFetcher",
    "WarehouseAlertFetcher",
    "WarehouseSiteFetcher",
    "LogActivityFetcher",
    "SystemActivityFetcher",
    "UserAlertFetcher",
    "SupplierAlertFetcher",
]
