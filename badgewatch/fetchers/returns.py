"""
Pending returns poll source.

The POS return API lists pending return requests; a request is new when it
was created after the last one already seen.
"""

from typing import Any, Dict, Optional, Tuple

from badgewatch.core.config import settings
from badgewatch.core.exceptions import ParseError
from badgewatch.fetchers.base import BaseSnapshotFetcher, plural
from badgewatch.fetchers.registry import FetcherRegistry
from badgewatch.schemas.common import CategoryKey, DiffPolicy
from badgewatch.schemas.snapshots import TimestampedItem, TimestampSnapshot


@FetcherRegistry.register("returns")
class ReturnsFetcher(BaseSnapshotFetcher):
    category = CategoryKey.RETURNS.value
    policy = DiffPolicy.TIMESTAMP
    action = "get_pending_returns"
    sub_item = "Pending Returns"
    interval_setting = "RETURNS_POLL_INTERVAL"

    def params(self) -> Dict[str, Any]:
        return {"limit": settings.RETURNS_FETCH_LIMIT}

    def endpoint(self) -> Optional[str]:
        return settings.returns_endpoint

    def parse(self, data: Any) -> TimestampSnapshot:
        items = []
        for row in self._require_list(data):
            row = self._require_dict(row)
            identifier = row.get("return_id", row.get("id"))
            if identifier is None or not row.get("created_at"):
                raise ParseError("Return without id or created_at", source=self.name)
            items.append(TimestampedItem(id=str(identifier), created_at=row["created_at"]))
        return TimestampSnapshot(items=items)

    def describe_alert(self, count: int) -> Optional[Tuple[str, str]]:
        title = f"New {plural(count, 'Return Request')}"
        body = (
            f"{count} new {plural(count, 'return request')} from POS system "
            f"{'requires' if count == 1 else 'require'} approval"
        )
        return title, body
