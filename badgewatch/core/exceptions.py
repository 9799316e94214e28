"""
BadgeWatch - Custom Exceptions
"""

from typing import Optional, Dict, Any
from fastapi import HTTPException, status


class BadgeWatchException(HTTPException):
    """Base exception for BadgeWatch."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.error_code = error_code
        self.extra = extra or {}

    def __str__(self) -> str:
        return self.detail


class NotFoundError(BadgeWatchException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str = None):
        detail = f"{resource} not found"
        if identifier:
            detail = f"{resource} '{identifier}' not found"
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )


class ValidationError(BadgeWatchException):
    """Validation error."""

    def __init__(self, detail: str, field: str = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="VALIDATION_ERROR",
            extra={"field": field} if field else {}
        )


class FetchError(BadgeWatchException):
    """
    The backend could not be reached or refused the request.

    Covers transport failures, timeouts, non-2xx statuses, non-JSON bodies
    and envelopes with ``success: false``.
    """

    def __init__(
        self,
        detail: str,
        action: str = None,
        status_code: int = None,
        retryable: bool = False
    ):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=detail,
            error_code="FETCH_ERROR",
            extra={
                "action": action,
                "upstream_status": status_code
            }
        )
        self.action = action
        self.retryable = retryable


class ParseError(BadgeWatchException):
    """The backend answered but the payload has the wrong shape."""

    def __init__(self, detail: str, source: str = None):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=detail,
            error_code="PARSE_ERROR",
            extra={"source": source}
        )
        self.source = source
