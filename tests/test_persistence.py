import pytest

from badgewatch.schemas import Delta, SubItemDelta, SystemDelta
from badgewatch.services.desktop import DesktopNotifier
from badgewatch.services.engine import NotificationEngine
from badgewatch.services.persistence import StateFile
from badgewatch.services.store import NotificationStore


@pytest.fixture
def state_file(tmp_path):
    return StateFile(tmp_path / "notifications.json")


def returns_rows(count):
    return [
        {"return_id": i, "created_at": f"2024-05-01T09:{i:02d}:00"}
        for i in range(1, count + 1)
    ]


class TestStateFile:
    def test_round_trip(self, state_file):
        store = NotificationStore()
        store.apply_delta(Delta(category="warehouse", sub_item_deltas={
            "Low Stock": SubItemDelta(count_delta=2, has_updates_new=True)
        }))
        store.apply_system_delta(SystemDelta(count_delta=1, has_updates_new=True))

        state_file.save(store.state)

        assert state_file.load() == store.state

    def test_missing_file_loads_nothing(self, state_file):
        assert state_file.load() is None
        assert state_file.restore_into(NotificationStore()) is False

    def test_corrupt_file_falls_back_to_zero_state(self, state_file, caplog):
        state_file.path.write_text("{not json", encoding="utf-8")
        store = NotificationStore()

        assert state_file.restore_into(store) is False
        assert store.has_any() is False
        assert "Error loading notifications" in caplog.text

    def test_every_change_is_saved(self, state_file):
        store = NotificationStore()
        store.subscribe(state_file.save)

        store.apply_delta(Delta(category="returns", count_delta=2, has_updates_new=True))
        assert state_file.load().categories["returns"].count == 2

        store.mark_viewed("returns")
        assert state_file.load().categories["returns"].count == 0


class TestEngineRestart:
    pytestmark = pytest.mark.anyio

    async def test_restored_backlog_is_not_counted_twice(self, tmp_path, fake_backend, desktop):
        path = tmp_path / "notifications.json"
        fake_backend.set("get_pending_returns", returns_rows(5))

        first = NotificationEngine(
            client=fake_backend.client(),
            notifier=DesktopNotifier(desktop),
            sources=["returns"],
            state_file=str(path)
        )
        await first.poll("returns")
        await first.aclose()
        assert first.store.get_total("returns") == 5

        second = NotificationEngine(
            client=fake_backend.client(),
            notifier=DesktopNotifier(desktop),
            sources=["returns"],
            state_file=str(path)
        )
        try:
            assert second.store.get_total("returns") == 5

            await second.poll("returns")
            assert second.store.get_total("returns") == 5

            fake_backend.set("get_pending_returns", returns_rows(6))
            await second.poll("returns")
            assert second.store.get_total("returns") == 6
            assert StateFile(path).load().categories["returns"].count == 6
        finally:
            await second.aclose()
