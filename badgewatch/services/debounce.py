"""
BadgeWatch - Debouncer
Coalesces a burst of triggers into one delayed call
"""

import asyncio
from typing import Any, Callable, Generic, Optional, TypeVar
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Debouncer(Generic[T]):
    """
    Re-armable one-shot timer.

    Each ``trigger`` cancels the pending call and schedules a new one after
    ``delay`` seconds, so only the last value of a burst reaches ``callback``.
    Use as an async context manager (or call ``cancel``) to make sure no call
    fires after the owner is gone.
    """

    def __init__(self, delay: float, callback: Callable[[T], Any]):
        self.delay = delay
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._value: Optional[T] = None
        self._closed = False

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self, value: T) -> None:
        if self._closed:
            raise RuntimeError("Debouncer is closed")

        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._value = value
        self._handle = loop.call_later(self.delay, self._fire)

    def flush(self) -> bool:
        """Deliver the pending value now. Returns whether anything was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._value = None

    def close(self) -> None:
        self.cancel()
        self._closed = True

    async def __aenter__(self) -> "Debouncer[T]":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _fire(self) -> None:
        value = self._value
        self._handle = None
        self._value = None
        try:
            self._callback(value)
        except Exception as e:
            logger.error(f"Debounced callback failed: {e}")
