"""
Base interface for all snapshot fetchers.
Each poll source asks the backend for the current state of one
notification category and returns it as a typed snapshot.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
import logging

from pydantic import ValidationError as PydanticValidationError

from badgewatch.core.backend import BackendClient
from badgewatch.core.config import settings
from badgewatch.core.exceptions import ParseError
from badgewatch.schemas.common import DiffPolicy
from badgewatch.services.date_range import DateRangeTracker
from badgewatch.services.preferences import SharedSettings

logger = logging.getLogger(__name__)


@dataclass
class FetcherContext:
    """Shared collaborators a fetcher may read its parameters from."""
    shared_settings: SharedSettings = field(default_factory=SharedSettings)
    date_ranges: DateRangeTracker = field(default_factory=DateRangeTracker)


class BaseSnapshotFetcher(ABC):
    """
    Abstract base class for poll sources.

    Subclasses declare which backend action they call, which category (or
    the ``system`` slice) their snapshot feeds, and how the payload maps to
    a snapshot.
    """

    # Source identification
    name: str = "unknown"
    category: str = "unknown"
    policy: DiffPolicy = DiffPolicy.COUNT
    action: str = ""

    # Attribute category-level figures to this sub-item
    sub_item: Optional[str] = None

    # Whether the first poll adds the existing backlog to the badge
    count_baseline: bool = True

    # Name of the Settings attribute holding the poll period
    interval_setting: str = "RETURNS_POLL_INTERVAL"

    def __init__(self, context: Optional[FetcherContext] = None, interval_seconds: Optional[float] = None):
        self.context = context or FetcherContext()
        if interval_seconds is None:
            interval_seconds = float(getattr(settings, self.interval_setting))
        self.interval_seconds = interval_seconds

    def params(self) -> Dict[str, Any]:
        """Request parameters sent next to the action name."""
        return {}

    def endpoint(self) -> Optional[str]:
        """Override the backend script this action lives on."""
        return None

    async def fetch(self, client: BackendClient):
        """
        Fetch and parse one snapshot.

        Raises:
            FetchError: the backend call failed
            ParseError: the payload does not have the expected shape
        """
        data = await client.call(self.action, self.params(), endpoint=self.endpoint())
        return self._parse_checked(data)

    def _parse_checked(self, data: Any):
        try:
            return self.parse(data)
        except ParseError:
            raise
        except (PydanticValidationError, TypeError, ValueError, KeyError, AttributeError) as e:
            raise ParseError(f"Malformed '{self.action}' payload: {e}", source=self.name) from e

    @abstractmethod
    def parse(self, data: Any):
        """
        Map the envelope's ``data`` to a snapshot.

        Args:
            data: Decoded ``data`` member of a successful envelope

        Returns:
            TimestampSnapshot, CountSnapshot or WindowSnapshot
        """
        pass

    def describe_alert(self, count: int) -> Optional[Tuple[str, str]]:
        """Title and body of the OS alert for ``count`` new items, if any."""
        return None

    def get_source_info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "sub_item": self.sub_item,
            "count_baseline": self.count_baseline,
            "policy": self.policy.value,
            "action": self.action,
            "interval_seconds": self.interval_seconds,
        }

    # ==================== Payload helpers ====================

    def _require_dict(self, data: Any) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise ParseError(
                f"'{self.action}' returned {type(data).__name__}, expected an object",
                source=self.name
            )
        return data

    def _require_list(self, data: Any) -> list:
        if not isinstance(data, list):
            raise ParseError(
                f"'{self.action}' returned {type(data).__name__}, expected a list",
                source=self.name
            )
        return data

    def _int(self, data: Dict[str, Any], *keys: str, default: int = 0) -> int:
        """First present key as a non-negative int (the backend sends numeric strings)."""
        for key in keys:
            if key in data and data[key] is not None:
                value = data[key]
                if isinstance(value, bool):
                    raise ParseError(f"'{key}' must be a number", source=self.name)
                number = int(value)
                if number < 0:
                    raise ParseError(f"'{key}' must not be negative", source=self.name)
                return number
        return default

    def _bool(self, data: Dict[str, Any], *keys: str, default: bool = False) -> bool:
        for key in keys:
            if key in data and data[key] is not None:
                value = data[key]
                if isinstance(value, str):
                    return value.strip().lower() in {"1", "true", "yes"}
                return bool(value)
        return default


def plural(count: int, singular: str, plural_form: str = None) -> str:
    if count == 1:
        return singular
    return plural_form or f"{singular}s"
