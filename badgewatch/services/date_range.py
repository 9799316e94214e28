"""
BadgeWatch - Report Date Ranges
Keeps "today" report feeds pointed at the current day
"""

from dataclasses import dataclass
from typing import Dict, List, Optional
from datetime import date, timedelta
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DateRange:
    start_date: date
    end_date: date

    @classmethod
    def today(cls, today: Optional[date] = None, include_previous_day: bool = False) -> "DateRange":
        today = today or date.today()
        start = today - timedelta(days=1) if include_previous_day else today
        return cls(start_date=start, end_date=today)

    @property
    def is_single_day(self) -> bool:
        return self.start_date == self.end_date

    def as_params(self) -> Dict[str, str]:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat()
        }


def roll_date_range(
    current: DateRange,
    today: date,
    include_previous_day: bool = False
) -> Optional[DateRange]:
    """
    Move a live range onto a new day.

    Only ranges that track "today" roll: a single-day range, or a
    yesterday-to-today range for feeds that keep late-night entries.
    User-picked historical ranges are left alone.

    Returns:
        The new range, or None when nothing changes
    """
    if current.end_date >= today:
        return None

    span = (current.end_date - current.start_date).days
    tracks_today = current.is_single_day or (include_previous_day and span == 1)
    if not tracks_today:
        return None

    return DateRange.today(today, include_previous_day)


class DateRangeTracker:
    """Date ranges of the report feeds, rolled over at midnight."""

    def __init__(self):
        self._ranges: Dict[str, DateRange] = {}
        self._extend: Dict[str, bool] = {}

    def track(self, name: str, include_previous_day: bool = False, today: Optional[date] = None) -> DateRange:
        self._extend[name] = include_previous_day
        if name not in self._ranges:
            self._ranges[name] = DateRange.today(today, include_previous_day)
        return self._ranges[name]

    def get(self, name: str) -> DateRange:
        if name not in self._ranges:
            return self.track(name)
        return self._ranges[name]

    def set(self, name: str, date_range: DateRange) -> None:
        self._ranges[name] = date_range
        self._extend.setdefault(name, False)

    def roll(self, today: Optional[date] = None) -> List[str]:
        """
        Roll every live range onto ``today``.

        Returns:
            Names of the feeds whose range changed
        """
        today = today or date.today()
        changed = []
        for name, current in list(self._ranges.items()):
            rolled = roll_date_range(current, today, self._extend.get(name, False))
            if rolled is not None:
                self._ranges[name] = rolled
                changed.append(name)

        if changed:
            logger.info(f"Date range rolled over to {today.isoformat()} for: {', '.join(changed)}")
        return changed
