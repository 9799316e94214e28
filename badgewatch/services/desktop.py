"""
BadgeWatch - Desktop Notifications
OS-level alerts behind a request-once permission gate
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional
import logging

import anyio

logger = logging.getLogger(__name__)


class PermissionState(str, Enum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class DesktopBackend(ABC):
    """
    Platform notification API.

    Implementations are synchronous; the notifier runs them in a worker
    thread so a slow platform call never blocks the poll loop.
    """

    @abstractmethod
    def permission(self) -> PermissionState:
        """Current permission state."""
        pass

    @abstractmethod
    def request_permission(self) -> PermissionState:
        """Ask the user and return the resulting state."""
        pass

    @abstractmethod
    def show(self, title: str, body: str, tag: Optional[str] = None) -> None:
        pass


class LogDesktopBackend(DesktopBackend):
    """Backend for headless runs: alerts go to the log."""

    def __init__(self, state: PermissionState = PermissionState.DEFAULT):
        self._state = state

    def permission(self) -> PermissionState:
        return self._state

    def request_permission(self) -> PermissionState:
        if self._state == PermissionState.DEFAULT:
            self._state = PermissionState.GRANTED
        return self._state

    def show(self, title: str, body: str, tag: Optional[str] = None) -> None:
        logger.info(f"[desktop] {title}: {body}")


class DesktopNotifier:
    """
    Fires OS alerts when permitted.

    Permission is requested at most once per session. Denied permission or a
    failing backend only disables the OS path; badge counts are unaffected.
    """

    def __init__(self, backend: Optional[DesktopBackend] = None, enabled: bool = True):
        self.backend = backend or LogDesktopBackend()
        self.enabled = enabled
        self._requested = False

    @property
    def requested(self) -> bool:
        return self._requested

    async def ensure_permission(self) -> PermissionState:
        try:
            state = self.backend.permission()
            if state == PermissionState.DEFAULT and not self._requested:
                self._requested = True
                state = await anyio.to_thread.run_sync(self.backend.request_permission)
                logger.info(f"Desktop notification permission: {state.value}")
            return state
        except Exception as e:
            logger.warning(f"Desktop notification permission check failed: {e}")
            return PermissionState.DENIED

    async def notify(self, title: str, body: str, tag: Optional[str] = None) -> bool:
        """
        Show an alert if enabled and permitted.

        Returns:
            True if the alert was handed to the platform
        """
        if not self.enabled:
            return False

        state = await self.ensure_permission()
        if state != PermissionState.GRANTED:
            return False

        try:
            await anyio.to_thread.run_sync(lambda: self.backend.show(title, body, tag))
            return True
        except Exception as e:
            logger.warning(f"Desktop notification failed: {e}")
            return False
