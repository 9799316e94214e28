"""
BadgeWatch - Notification Engine
Wires fetchers, detector, store and scheduler into poll cycles
"""

from contextlib import asynccontextmanager
from functools import partial
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional
import logging

from fastapi import Request

from badgewatch.core.backend import BackendClient
from badgewatch.core.config import settings
from badgewatch.core.exceptions import FetchError, NotFoundError, ParseError
from badgewatch.fetchers import BaseSnapshotFetcher, FetcherContext, FetcherRegistry
from badgewatch.fetchers.reports import ReportFeedFetcher
from badgewatch.schemas.common import PollOutcome
from badgewatch.services.date_range import DateRangeTracker
from badgewatch.services.desktop import DesktopNotifier
from badgewatch.services.detector import ChangeDetector, Detection
from badgewatch.services.persistence import StateFile
from badgewatch.services.preferences import PreferenceSync, SharedSettings
from badgewatch.services.scheduler import PollScheduler
from badgewatch.services.store import NotificationStore

logger = logging.getLogger(__name__)

ROLLOVER_JOB = "date_rollover"


class NotificationEngine:
    """
    Process-wide notification engine.

    One poll cycle is ``fetch -> detect -> merge -> alert``. Detection and
    merge run back to back without a suspension point, so the cursor and the
    store never disagree about what was already counted.
    """

    def __init__(
        self,
        client: Optional[BackendClient] = None,
        store: Optional[NotificationStore] = None,
        shared_settings: Optional[SharedSettings] = None,
        notifier: Optional[DesktopNotifier] = None,
        sources: Optional[List[str]] = None,
        intervals: Optional[Mapping[str, float]] = None,
        rollover_interval: Optional[float] = None,
        debounce_delay: Optional[float] = None,
        state_file: Optional[str] = None
    ):
        self._owns_client = client is None
        self.client = client or BackendClient()
        self.store = store or NotificationStore()
        self.state_file: Optional[StateFile] = None
        self._stop_saving = None
        # a restored badge already holds the backlog first polls would add
        self._restored = False
        state_path = state_file if state_file is not None else settings.STATE_FILE
        if state_path:
            self.state_file = StateFile(state_path)
            self._restored = self.state_file.restore_into(self.store)
            self._stop_saving = self.store.subscribe(self.state_file.save)
        self.detector = ChangeDetector()
        self.shared_settings = shared_settings or SharedSettings()
        self.context = FetcherContext(
            shared_settings=self.shared_settings,
            date_ranges=DateRangeTracker()
        )
        self.fetchers: Dict[str, BaseSnapshotFetcher] = FetcherRegistry.create_all(self.context, names=sources)
        self.preferences = PreferenceSync(self.shared_settings, delay=debounce_delay)
        self.notifier = notifier or DesktopNotifier(enabled=settings.DESKTOP_NOTIFICATIONS)

        self.scheduler = PollScheduler()
        for name, fetcher in self.fetchers.items():
            if intervals and name in intervals:
                fetcher.interval_seconds = intervals[name]
            self.scheduler.add_job(name, fetcher.interval_seconds, partial(self.poll, name))

        self.scheduler.add_job(
            ROLLOVER_JOB,
            rollover_interval or settings.DATE_ROLLOVER_INTERVAL,
            self.roll_over,
            immediate=False
        )
        self._started = False

    # ==================== Poll cycles ====================

    def get_fetcher(self, name: str) -> BaseSnapshotFetcher:
        if name not in self.fetchers:
            raise NotFoundError("Poll source", name)
        return self.fetchers[name]

    async def poll(self, name: str) -> PollOutcome:
        """
        Background poll: failures are logged and the previous state is kept.
        """
        try:
            await self._run_cycle(name)
        except (FetchError, ParseError) as e:
            logger.error(f"Poll {name} failed, keeping previous state: {e.detail}")
            return PollOutcome.FAILED
        return PollOutcome.APPLIED

    async def refresh(self, name: str):
        """
        Manual poll of one source.

        Returns:
            The Detection, or ``PollOutcome.SKIPPED`` if a fetch of the same
            source is already running

        Raises:
            NotFoundError: Unknown source
            FetchError / ParseError: The cycle failed (state is unchanged)
        """
        self.get_fetcher(name)
        return await self.scheduler.run_exclusive(name, partial(self._run_cycle, name))

    async def _run_cycle(self, name: str) -> Detection:
        fetcher = self.get_fetcher(name)
        snapshot = await fetcher.fetch(self.client)

        detection = self.detector.detect(
            name,
            fetcher.category,
            snapshot,
            sub_item=fetcher.sub_item,
            count_baseline=fetcher.count_baseline and not self._restored
        )
        if detection.delta is not None:
            self.store.apply_delta(detection.delta)
        if detection.system_delta is not None:
            self.store.apply_system_delta(detection.system_delta)

        if detection.alert_count > 0:
            await self._alert(fetcher, detection)
        return detection

    async def _alert(self, fetcher: BaseSnapshotFetcher, detection: Detection) -> None:
        message = fetcher.describe_alert(detection.alert_count)
        if message is None:
            return
        title, body = message
        await self.notifier.notify(title, body, tag=fetcher.name)

    async def roll_over(self) -> List[str]:
        """Move report feeds onto today and re-seed their cursors."""
        changed = self.context.date_ranges.roll()
        for name in changed:
            self.detector.reset(name)
        return changed

    # ==================== Lifecycle ====================

    def sources_info(self) -> List[Dict[str, Any]]:
        info = []
        for name, fetcher in self.fetchers.items():
            job = self.scheduler.get_job(name)
            info.append({
                **fetcher.get_source_info(),
                "state": job.state.value,
                "running": self.scheduler.is_running(name),
                "runs": job.runs,
                "failures": job.failures,
                "skips": job.skips,
                "last_run_at": job.last_run_at,
            })
        return info

    @asynccontextmanager
    async def mount(self, *names: str) -> AsyncIterator["NotificationEngine"]:
        """
        Poll the named sources while a view is open.

        Views showing a report feed also keep the midnight rollover running.
        """
        for name in names:
            self.get_fetcher(name)
        jobs = list(names)
        if any(isinstance(self.fetchers[name], ReportFeedFetcher) for name in names):
            jobs.append(ROLLOVER_JOB)

        await self.notifier.ensure_permission()
        async with self.scheduler.mount(*jobs):
            yield self

    async def start(self) -> None:
        """Start polling every source."""
        if self._started:
            return
        self._started = True
        await self.notifier.ensure_permission()
        self.scheduler.start_all()
        logger.info(f"Notification engine started with {len(self.fetchers)} poll sources")

    async def aclose(self) -> None:
        self.preferences.close()
        if self._stop_saving is not None:
            self._stop_saving()
        await self.scheduler.aclose()
        if self._owns_client:
            await self.client.aclose()
        logger.info("Notification engine stopped")

    async def __aenter__(self) -> "NotificationEngine":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def get_engine(request: Request) -> NotificationEngine:
    """Dependency returning the application's engine."""
    return request.app.state.engine
