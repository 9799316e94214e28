"""
BadgeWatch - Change Detector
Turns fresh snapshots into deltas against per-source cursors
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
from datetime import datetime
import logging

from badgewatch.schemas.common import SYSTEM_TARGET
from badgewatch.schemas.notifications import Delta, SubItemDelta, SystemDelta
from badgewatch.schemas.snapshots import (
    CountSnapshot,
    TimestampSnapshot,
    WindowSnapshot,
)

logger = logging.getLogger(__name__)

# Cursor key for the category-level slice of a source
OWN = ""


@dataclass
class PollCursor:
    """
    Last observed reference point of one poll source.

    ``last_checked_at`` of ``None`` on an existing cursor means the source was
    seen empty: everything that shows up later is new.
    """
    last_checked_at: Optional[datetime] = None
    last_data_count: Optional[int] = None
    sub_counts: Dict[str, int] = field(default_factory=dict)
    # slice -> (has_updates, count) last forwarded for window sources
    verdicts: Dict[str, Tuple[bool, int]] = field(default_factory=dict)


@dataclass
class Detection:
    """Result of comparing one snapshot with its cursor."""
    source: str
    target: str
    delta: Optional[Delta] = None
    system_delta: Optional[SystemDelta] = None
    alert_count: int = 0
    baseline: bool = False

    @property
    def new_count(self) -> int:
        if self.delta is not None:
            return self.delta.total
        if self.system_delta is not None:
            return self.system_delta.count_delta
        return 0


class ChangeDetector:
    """
    Per-source change detection.

    Timestamp sources count items created strictly after the cursor. Count
    sources count growth in cardinality. Window sources forward the backend's
    verdict, remembering what they already forwarded so repeated polls of the
    same window are not merged twice.

    On the first observation of a timestamp or count source the cursor is
    seeded and the backlog is reported as a baseline count without raising
    the update flag or an alert.
    """

    def __init__(self):
        self._cursors: Dict[str, PollCursor] = {}

    def cursor(self, source: str) -> Optional[PollCursor]:
        return self._cursors.get(source)

    def reset(self, source: str) -> None:
        """Forget a source's cursor so its next poll re-seeds."""
        if self._cursors.pop(source, None) is not None:
            logger.info(f"Cursor reset for {source}")

    def reset_all(self) -> None:
        self._cursors.clear()

    def detect(
        self,
        source: str,
        target: str,
        snapshot,
        sub_item: Optional[str] = None,
        count_baseline: bool = True
    ) -> Detection:
        """
        Compare a snapshot with the source's cursor and advance the cursor.

        Args:
            source: Poll source name (cursor owner)
            target: Category key, or ``system`` for the system slice
            snapshot: Timestamp, count or window snapshot
            sub_item: Attribute category-level figures to this sub-item
            count_baseline: Whether a first observation adds its backlog to
                the badge (it never raises the flag or an alert)

        Returns:
            Detection carrying a Delta (or SystemDelta) and the alert count
        """
        if isinstance(snapshot, TimestampSnapshot):
            detection = self._detect_timestamp(source, target, snapshot, sub_item)
        elif isinstance(snapshot, CountSnapshot):
            detection = self._detect_count(source, target, snapshot, sub_item)
        elif isinstance(snapshot, WindowSnapshot):
            detection = self._detect_window(source, target, snapshot, sub_item)
        else:
            raise TypeError(f"Unsupported snapshot type: {type(snapshot).__name__}")

        if detection.baseline and not count_baseline:
            detection = self._build(source, target, {}, {}, sub_item, baseline=True)

        if detection.new_count or detection.alert_count:
            logger.info(
                f"{source}: {detection.new_count} new"
                + (" (baseline)" if detection.baseline else "")
            )
        return detection

    # ==================== Policies ====================

    def _detect_timestamp(
        self,
        source: str,
        target: str,
        snapshot: TimestampSnapshot,
        sub_item: Optional[str]
    ) -> Detection:
        cursor = self._cursors.get(source)
        latest = snapshot.latest

        if cursor is None:
            self._cursors[source] = PollCursor(last_checked_at=latest)
            counts = {OWN: len(snapshot.items)}
            return self._build(source, target, counts, {}, sub_item, baseline=True)

        since = cursor.last_checked_at
        new_items = [
            item for item in snapshot.items
            if since is None or item.created_at > since
        ]
        if latest is not None and (since is None or latest > since):
            cursor.last_checked_at = latest

        counts = {OWN: len(new_items)}
        raised = {OWN: bool(new_items)}
        return self._build(source, target, counts, raised, sub_item)

    def _detect_count(
        self,
        source: str,
        target: str,
        snapshot: CountSnapshot,
        sub_item: Optional[str]
    ) -> Detection:
        cursor = self._cursors.get(source)
        current = {OWN: snapshot.count, **snapshot.sub_counts}

        if cursor is None:
            self._cursors[source] = PollCursor(
                last_data_count=snapshot.count,
                sub_counts=dict(snapshot.sub_counts)
            )
            return self._build(source, target, current, {}, sub_item, baseline=True)

        previous = {OWN: cursor.last_data_count or 0, **cursor.sub_counts}
        counts = {
            key: max(0, value - previous.get(key, 0))
            for key, value in current.items()
        }
        cursor.last_data_count = snapshot.count
        cursor.sub_counts = dict(snapshot.sub_counts)

        raised = {key: value > 0 for key, value in counts.items()}
        return self._build(source, target, counts, raised, sub_item)

    def _detect_window(
        self,
        source: str,
        target: str,
        snapshot: WindowSnapshot,
        sub_item: Optional[str]
    ) -> Detection:
        cursor = self._cursors.setdefault(source, PollCursor())

        verdicts = {OWN: (snapshot.has_updates, snapshot.count)}
        for name, sub in snapshot.sub_items.items():
            verdicts[name] = (sub.has_updates, sub.count)

        counts: Dict[str, int] = {}
        raised: Dict[str, bool] = {}
        for key, (has_updates, count) in verdicts.items():
            if not has_updates:
                cursor.verdicts.pop(key, None)
                continue
            prev_has, prev_count = cursor.verdicts.get(key, (False, 0))
            if prev_has:
                counts[key] = max(0, count - prev_count)
                raised[key] = count > prev_count
            else:
                counts[key] = count
                raised[key] = True
            cursor.verdicts[key] = (True, count)

        cursor.last_checked_at = datetime.now().astimezone()
        return self._build(source, target, counts, raised, sub_item)

    # ==================== Delta building ====================

    def _build(
        self,
        source: str,
        target: str,
        counts: Dict[str, int],
        raised: Dict[str, bool],
        sub_item: Optional[str],
        baseline: bool = False
    ) -> Detection:
        if sub_item is not None and OWN in counts:
            counts = dict(counts)
            raised = dict(raised)
            counts[sub_item] = counts.get(sub_item, 0) + counts.pop(OWN)
            raised[sub_item] = raised.get(sub_item, False) or raised.pop(OWN, False)

        total = sum(counts.values())
        any_raised = any(raised.values())
        if baseline:
            alert_count = 0
        elif total:
            alert_count = total
        else:
            alert_count = 1 if any_raised else 0

        if target == SYSTEM_TARGET:
            return Detection(
                source=source,
                target=target,
                system_delta=SystemDelta(count_delta=total, has_updates_new=any_raised),
                alert_count=alert_count,
                baseline=baseline
            )

        sub_item_deltas = {
            key: SubItemDelta(count_delta=counts.get(key, 0), has_updates_new=raised.get(key, False))
            for key in set(counts) | set(raised)
            if key != OWN
        }
        delta = Delta(
            category=target,
            count_delta=counts.get(OWN, 0),
            has_updates_new=raised.get(OWN, False),
            sub_item_deltas=sub_item_deltas
        )
        return Detection(
            source=source,
            target=target,
            delta=delta,
            alert_count=alert_count,
            baseline=baseline
        )
