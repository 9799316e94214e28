import pytest

from badgewatch.services.desktop import DesktopNotifier, LogDesktopBackend, PermissionState

pytestmark = pytest.mark.anyio


async def test_permission_is_requested_once(desktop_factory):
    backend = desktop_factory(state=PermissionState.DEFAULT, grant=False)
    notifier = DesktopNotifier(backend)

    assert await notifier.notify("Inventory Alert", "2 new stock alerts") is False
    assert await notifier.notify("Inventory Alert", "3 new stock alerts") is False

    assert backend.requests == 1
    assert backend.shown == []


async def test_granted_permission_shows_alert(desktop_factory):
    backend = desktop_factory(state=PermissionState.DEFAULT)
    notifier = DesktopNotifier(backend)

    assert await notifier.notify("New Return Request", "1 new return request", tag="returns") is True

    assert notifier.requested
    assert backend.shown == [("New Return Request", "1 new return request", "returns")]


async def test_denied_permission_is_not_asked_again(desktop_factory):
    backend = desktop_factory(state=PermissionState.DENIED)
    notifier = DesktopNotifier(backend)

    assert await notifier.ensure_permission() == PermissionState.DENIED
    assert backend.requests == 0


async def test_disabled_notifier_stays_silent(desktop):
    notifier = DesktopNotifier(desktop, enabled=False)

    assert await notifier.notify("Inventory Alert", "1 new stock alert") is False
    assert desktop.shown == []


async def test_failing_platform_is_contained(desktop):
    def broken(title, body, tag=None):
        raise OSError("notification daemon gone")

    desktop.show = broken
    notifier = DesktopNotifier(desktop)

    assert await notifier.notify("Inventory Alert", "1 new stock alert") is False


async def test_log_backend_grants_on_request():
    backend = LogDesktopBackend()
    notifier = DesktopNotifier(backend)

    assert await notifier.ensure_permission() == PermissionState.GRANTED
    assert backend.permission() == PermissionState.GRANTED
