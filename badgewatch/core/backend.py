"""
BadgeWatch - Backend Client
JSON action calls against the dashboard data service
"""

import asyncio
from typing import Optional, Dict, Any

import httpx
import structlog

from badgewatch.core.config import settings
from badgewatch.core.exceptions import FetchError

logger = structlog.get_logger()


class BackendClient:
    """
    Thin wrapper over ``httpx.AsyncClient`` for the backend's action API.

    Every call is a POST with a JSON body ``{"action": ..., **params}`` and the
    backend answers with an envelope ``{"success": bool, "data": ..., "message": ...}``.
    Anything other than a successful envelope is raised as ``FetchError``.
    """

    def __init__(
        self,
        endpoint: str = None,
        timeout: float = None,
        max_retries: int = None,
        retry_delay: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.endpoint = endpoint or settings.backend_endpoint
        self.timeout = settings.REQUEST_TIMEOUT if timeout is None else timeout
        self.max_retries = settings.MAX_RETRIES if max_retries is None else max_retries
        self.retry_delay = settings.RETRY_DELAY if retry_delay is None else retry_delay
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json", "Accept": "application/json"}
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def call(
        self,
        action: str,
        params: Dict[str, Any] | None = None,
        endpoint: str = None
    ) -> Any:
        """
        Call a backend action, retrying transient failures.

        Transport errors and 5xx answers are retried up to ``max_retries``
        extra times with a fixed delay. Explicit ``success: false`` and
        malformed bodies fail immediately.

        Returns:
            The envelope's ``data`` member (``None`` when absent)

        Raises:
            FetchError: when the call did not produce a successful envelope
        """
        for attempt in range(self.max_retries + 1):
            try:
                return await self._call_once(action, params, endpoint)
            except FetchError as e:
                if not e.retryable or attempt >= self.max_retries:
                    raise
                logger.warning(
                    "Backend call failed, retrying",
                    action=action,
                    attempt=attempt + 1,
                    error=e.detail
                )
                await asyncio.sleep(self.retry_delay)

        # unreachable, the loop either returns or raises
        raise FetchError(f"Backend call '{action}' failed", action=action)

    async def _call_once(
        self,
        action: str,
        params: Dict[str, Any] | None,
        endpoint: str | None
    ) -> Any:
        url = endpoint or self.endpoint
        payload = {"action": action, **(params or {})}

        try:
            response = await self.client.post(url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            raise FetchError(
                f"Backend returned HTTP {code} for '{action}'",
                action=action,
                status_code=code,
                retryable=code >= 500
            ) from e
        except httpx.TimeoutException as e:
            raise FetchError(
                f"Backend timed out for '{action}'",
                action=action,
                retryable=True
            ) from e
        except httpx.TransportError as e:
            raise FetchError(
                f"Backend unreachable for '{action}': {e}",
                action=action,
                retryable=True
            ) from e

        try:
            body = response.json()
        except ValueError as e:
            raise FetchError(
                f"Non-JSON response for '{action}'",
                action=action,
                status_code=response.status_code
            ) from e

        if not isinstance(body, dict) or "success" not in body:
            raise FetchError(
                f"Unexpected response envelope for '{action}'",
                action=action,
                status_code=response.status_code
            )

        if not body.get("success"):
            raise FetchError(
                body.get("message") or f"Backend reported failure for '{action}'",
                action=action,
                status_code=response.status_code
            )

        logger.debug("Backend call succeeded", action=action, url=url)
        return body.get("data")
