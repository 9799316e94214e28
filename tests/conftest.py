import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from badgewatch.core.backend import BackendClient
from badgewatch.services.desktop import DesktopBackend, PermissionState


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeBackend:
    """In-memory action endpoint served through ``httpx.MockTransport``.

    ``responses`` maps an action to either the ``data`` of a successful
    envelope, a full ``httpx.Response``, or a callable receiving the decoded
    request body and returning one of those.
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None):
        self.responses: Dict[str, Any] = dict(responses or {})
        self.calls: List[Dict[str, Any]] = []

    def set(self, action: str, response: Any) -> None:
        self.responses[action] = response

    def actions(self) -> List[str]:
        return [call["action"] for call in self.calls]

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.calls.append(body)

        response = self.responses.get(body["action"])
        if callable(response):
            response = response(body)
        if isinstance(response, httpx.Response):
            return response
        if response is None:
            return httpx.Response(200, json={"success": False, "message": f"Unknown action {body['action']}"})
        return httpx.Response(200, json={"success": True, "data": response})

    def client(self, **kwargs) -> BackendClient:
        kwargs.setdefault("endpoint", "http://backend.test/backend.php")
        kwargs.setdefault("retry_delay", 0)
        return BackendClient(transport=httpx.MockTransport(self.handler), **kwargs)


class RecordingDesktop(DesktopBackend):
    """Desktop backend that remembers what it was asked to do."""

    def __init__(self, state: PermissionState = PermissionState.GRANTED, grant: bool = True):
        self.state = state
        self.grant = grant
        self.requests = 0
        self.shown: List[tuple] = []

    def permission(self) -> PermissionState:
        return self.state

    def request_permission(self) -> PermissionState:
        self.requests += 1
        self.state = PermissionState.GRANTED if self.grant else PermissionState.DENIED
        return self.state

    def show(self, title: str, body: str, tag: Optional[str] = None) -> None:
        self.shown.append((title, body, tag))


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def desktop_factory():
    return RecordingDesktop


@pytest.fixture
def desktop():
    return RecordingDesktop()
