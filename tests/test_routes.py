"""Integration tests for the HTTP surface."""

import time

import httpx
import pytest
from fastapi.testclient import TestClient

from badgewatch.core.config import settings
from badgewatch.main import create_app
from badgewatch.schemas import Delta, SubItemDelta, SystemDelta
from badgewatch.services.desktop import DesktopNotifier
from badgewatch.services.engine import NotificationEngine

API = settings.API_PREFIX


@pytest.fixture
def engine(fake_backend, desktop):
    return NotificationEngine(
        client=fake_backend.client(),
        notifier=DesktopNotifier(desktop),
        sources=["returns", "reports", "logs", "warehouse"],
        debounce_delay=0.02,
    )


@pytest.fixture
def client(engine):
    app = create_app(engine=engine, start_polling=False)
    with TestClient(app) as client:
        yield client


class TestBadgeTree:
    def test_empty_tree(self, client):
        response = client.get(f"{API}/notifications")

        assert response.status_code == 200
        data = response.json()
        assert data["has_any"] is False
        assert set(data["categories"]) == {
            "returns", "reports", "warehouse", "logs", "users", "suppliers",
            "warehouse_sites", "system_activity",
        }
        assert data["system"]["has_updates"] is False

    def test_category_totals_include_sub_items(self, client, engine):
        engine.store.apply_delta(Delta(
            category="reports",
            count_delta=1,
            sub_item_deltas={"Sales Report": SubItemDelta(count_delta=3, has_updates_new=True)},
        ))

        response = client.get(f"{API}/notifications/reports")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 4
        assert data["has_updates"] is True
        assert data["state"]["sub_items"]["Sales Report"]["count"] == 3

    def test_unknown_category(self, client):
        response = client.get(f"{API}/notifications/payroll")

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"


class TestViewClear:
    def test_mark_category_viewed(self, client, engine):
        engine.store.apply_delta(Delta(category="returns", count_delta=2, has_updates_new=True))

        response = client.put(f"{API}/notifications/returns/viewed")

        assert response.status_code == 200
        assert response.json()["total"] == 0
        assert engine.store.has_any() is False

    def test_mark_sub_item_viewed(self, client, engine):
        engine.store.apply_delta(Delta(
            category="warehouse",
            sub_item_deltas={
                "Low Stock": SubItemDelta(count_delta=2, has_updates_new=True),
                "Expired": SubItemDelta(count_delta=1, has_updates_new=True),
            },
        ))

        response = client.put(f"{API}/notifications/warehouse/sub-items/Low Stock/viewed")

        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert engine.store.get_sub_item("warehouse", "Expired").count == 1

    def test_unknown_sub_item(self, client):
        response = client.put(f"{API}/notifications/warehouse/sub-items/Melted/viewed")
        assert response.status_code == 404

    def test_unknown_sub_item_leaves_tree_alone(self, client):
        client.put(f"{API}/notifications/returns/sub-items/Nope/viewed")

        data = client.get(f"{API}/notifications/returns").json()
        assert "Nope" not in data["state"]["sub_items"]

    def test_mark_activity_kind_viewed(self, client, engine):
        engine.store.apply_delta(Delta(
            category="system_activity",
            sub_item_deltas={
                "POS Activity": SubItemDelta(count_delta=2, has_updates_new=True),
                "Stock Out": SubItemDelta(count_delta=1, has_updates_new=True),
            },
        ))

        response = client.put(f"{API}/notifications/system_activity/sub-items/POS Activity/viewed")

        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert response.json()["has_updates"] is True

    def test_clear_system_updates(self, client, engine):
        engine.store.apply_system_delta(SystemDelta(count_delta=1, has_updates_new=True))

        response = client.delete(f"{API}/notifications/system")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert engine.store.system.has_updates is False


class TestRefresh:
    def test_refresh_applies_poll(self, client, fake_backend, engine):
        fake_backend.set("check_login_activity", {"hasUpdates": True})

        response = client.post(f"{API}/notifications/sources/logs/refresh")

        assert response.status_code == 200
        data = response.json()
        assert data["outcome"] == "applied"
        assert data["alert_count"] == 1
        assert engine.store.has_updates("logs") is True

    def test_refresh_reports_backend_failure(self, client, fake_backend, engine):
        fake_backend.set("check_reports_updates", httpx.Response(
            200, json={"success": False, "message": "Report tables locked"}
        ))

        response = client.post(f"{API}/notifications/sources/reports/refresh")

        assert response.status_code == 502
        data = response.json()
        assert data["error"] == "Report tables locked"
        assert data["error_code"] == "FETCH_ERROR"
        assert engine.store.has_any() is False

    def test_refresh_unknown_source(self, client):
        response = client.post(f"{API}/notifications/sources/payroll/refresh")
        assert response.status_code == 404

    def test_list_sources(self, client):
        response = client.get(f"{API}/notifications/sources")

        assert response.status_code == 200
        names = [source["name"] for source in response.json()["data"]]
        assert names == ["returns", "reports", "logs", "warehouse"]


class TestPreferences:
    def test_defaults(self, client):
        response = client.get(f"{API}/preferences")

        assert response.status_code == 200
        data = response.json()
        assert data["toggles"] == {"low_stock": True, "expiry_alerts": True, "movement_alerts": True}
        assert data["settings"]["lowStockThreshold"] == settings.DEFAULT_LOW_STOCK_THRESHOLD
        assert data["pending"] is False

    def test_toggles_sync_after_quiet_period(self, client, engine):
        response = client.put(f"{API}/preferences", json={"low_stock": False, "low_stock_threshold": "5"})

        assert response.status_code == 200
        data = response.json()
        assert data["toggles"]["low_stock"] is False
        assert data["settings"]["lowStockThreshold"] == 5
        assert data["pending"] is True

        time.sleep(0.2)

        data = client.get(f"{API}/preferences").json()
        assert data["settings"]["lowStockAlerts"] is False
        assert data["pending"] is False
        assert engine.shared_settings.writes == 2

    def test_invalid_threshold(self, client):
        response = client.put(f"{API}/preferences", json={"expiry_warning_days": "soon"})

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["sources"] == 4
