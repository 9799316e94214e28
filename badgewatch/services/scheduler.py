"""
BadgeWatch - Poll Scheduler
One repeating timer per poll source, with a no-overlap guard
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Set
from datetime import datetime, timezone
import logging

from badgewatch.schemas.common import PollOutcome, PollState

logger = logging.getLogger(__name__)

JobRunner = Callable[[], Awaitable[Any]]


class PollJob:
    """
    A named periodic job and its ``IDLE -> FETCHING -> IDLE`` state.

    The runner's return value is kept as the last result. A runner returning
    a ``PollOutcome`` decides the cycle's outcome itself; an exception
    escaping the runner marks the cycle failed.
    """

    def __init__(self, name: str, interval: float, runner: JobRunner, immediate: bool = True):
        self.name = name
        self.interval = interval
        self.runner = runner
        self.immediate = immediate
        self.state = PollState.IDLE
        self.runs = 0
        self.skips = 0
        self.failures = 0
        self.last_run_at: Optional[datetime] = None
        self.last_result: Any = None

    def __repr__(self) -> str:
        return f"<PollJob {self.name} every {self.interval}s state={self.state.value}>"


class PollScheduler:
    """
    Drives poll jobs on fixed periods.

    - A tick that finds its job still fetching is skipped, never queued.
    - ``stop`` cancels the timer only; a fetch already in flight completes
      and its result is still applied.
    - ``aclose`` is application teardown: timers and in-flight fetches are
      cancelled.
    """

    def __init__(self):
        self._jobs: Dict[str, PollJob] = {}
        self._timers: Dict[str, asyncio.Task] = {}
        self._mounts: Dict[str, int] = {}
        self._pinned: Set[str] = set()
        self._inflight: Set[asyncio.Task] = set()
        self._closed = False

    # ==================== Jobs ====================

    def add_job(self, name: str, interval: float, runner: JobRunner, immediate: bool = True) -> PollJob:
        if name in self._jobs:
            raise ValueError(f"Job '{name}' already registered")
        if interval <= 0:
            raise ValueError(f"Job '{name}' needs a positive interval")
        job = PollJob(name, interval, runner, immediate)
        self._jobs[name] = job
        return job

    def get_job(self, name: str) -> PollJob:
        if name not in self._jobs:
            raise KeyError(f"Unknown poll job '{name}'")
        return self._jobs[name]

    @property
    def jobs(self) -> Dict[str, PollJob]:
        return dict(self._jobs)

    def is_running(self, name: str) -> bool:
        timer = self._timers.get(name)
        return timer is not None and not timer.done()

    # ==================== Execution ====================

    async def run_now(self, name: str) -> PollOutcome:
        """
        Run one cycle of a job immediately, unless it is already fetching.

        The fetch is shielded: cancelling the caller does not cancel it.
        """
        job = self.get_job(name)
        task = self._spawn(job)
        if task is None:
            return PollOutcome.SKIPPED
        return await asyncio.shield(task)

    def _spawn(self, job: PollJob) -> Optional[asyncio.Task]:
        if self._closed:
            return None
        if job.state == PollState.FETCHING:
            job.skips += 1
            logger.debug(f"Skipping {job.name}: previous fetch still running")
            return None

        job.state = PollState.FETCHING
        task = asyncio.get_running_loop().create_task(self._execute(job), name=f"poll:{job.name}")
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def _execute(self, job: PollJob) -> PollOutcome:
        try:
            job.last_result = await job.runner()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            job.failures += 1
            logger.error(f"Poll job {job.name} failed: {e}")
            return PollOutcome.FAILED
        finally:
            job.last_run_at = datetime.now(timezone.utc)
            job.state = PollState.IDLE

        # runners may report their own outcome
        if isinstance(job.last_result, PollOutcome):
            outcome = job.last_result
        else:
            outcome = PollOutcome.APPLIED

        if outcome == PollOutcome.FAILED:
            job.failures += 1
        else:
            job.runs += 1
        return outcome

    async def run_exclusive(self, name: str, runner: JobRunner) -> Any:
        """
        Run ``runner`` in place of the job's own cycle, under the same guard.

        Unlike ``run_now`` the call is awaited in the caller's task and errors
        propagate, so a manual refresh can report them.

        Returns:
            The runner's result, or ``PollOutcome.SKIPPED`` if the job is busy
        """
        job = self.get_job(name)
        if job.state == PollState.FETCHING:
            job.skips += 1
            return PollOutcome.SKIPPED

        job.state = PollState.FETCHING
        try:
            result = await runner()
            job.runs += 1
            return result
        except Exception:
            job.failures += 1
            raise
        finally:
            job.last_run_at = datetime.now(timezone.utc)
            job.state = PollState.IDLE

    async def _timer(self, job: PollJob) -> None:
        if job.immediate:
            self._spawn(job)
        while True:
            await asyncio.sleep(job.interval)
            self._spawn(job)

    # ==================== Timers ====================

    def start(self, name: str) -> None:
        """Poll ``name`` until ``stop``, whatever views mount or unmount it."""
        if self._closed:
            raise RuntimeError("Scheduler is closed")
        self.get_job(name)
        self._pinned.add(name)
        self._start_timer(name)

    def stop(self, name: str) -> None:
        """Release a ``start``; the timer keeps running while a view holds it."""
        self._pinned.discard(name)
        if not self._mounts.get(name):
            self._stop_timer(name)

    def start_all(self) -> None:
        for name in self._jobs:
            self.start(name)

    def _start_timer(self, name: str) -> None:
        if self.is_running(name):
            return
        job = self._jobs[name]
        self._timers[name] = asyncio.get_running_loop().create_task(
            self._timer(job), name=f"timer:{name}"
        )
        logger.info(f"Started polling {name} every {job.interval}s")

    def _stop_timer(self, name: str) -> None:
        timer = self._timers.pop(name, None)
        if timer is not None:
            timer.cancel()
            logger.info(f"Stopped polling {name}")

    @asynccontextmanager
    async def mount(self, *names: str) -> AsyncIterator["PollScheduler"]:
        """
        Keep the named jobs' timers running for the duration of a view.

        Mounts are reference counted: a job shared by two mounted views keeps
        polling until the last of them exits, and a job started with ``start``
        keeps polling after every view has exited. Timers are released on
        every exit path.
        """
        if self._closed:
            raise RuntimeError("Scheduler is closed")
        for name in names:
            self.get_job(name)

        acquired = []
        try:
            for name in names:
                self._mounts[name] = self._mounts.get(name, 0) + 1
                acquired.append(name)
                self._start_timer(name)
            yield self
        finally:
            for name in acquired:
                # aclose may already have dropped every mount
                remaining = self._mounts.get(name, 0) - 1
                if remaining > 0:
                    self._mounts[name] = remaining
                    continue
                self._mounts.pop(name, None)
                if name not in self._pinned:
                    self._stop_timer(name)

    # ==================== Teardown ====================

    async def drain(self) -> None:
        """Wait for every in-flight fetch to finish."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def aclose(self) -> None:
        self._closed = True
        timers = list(self._timers.values())
        self._timers.clear()
        self._mounts.clear()
        self._pinned.clear()

        pending = timers + list(self._inflight)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("Poll scheduler closed")
