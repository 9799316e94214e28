import asyncio

import pytest

from badgewatch.schemas import PollOutcome, PollState
from badgewatch.services.scheduler import PollScheduler

pytestmark = pytest.mark.anyio


class Probe:
    """Poll runner that can be held open until released."""

    def __init__(self, hold: bool = False):
        self.calls = 0
        self.finished = 0
        self.cancelled = False
        self.release = asyncio.Event()
        if not hold:
            self.release.set()

    async def __call__(self):
        self.calls += 1
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        self.finished += 1


@pytest.fixture
async def scheduler():
    scheduler = PollScheduler()
    yield scheduler
    await scheduler.aclose()


class TestJobs:
    async def test_duplicate_and_invalid_jobs(self, scheduler):
        scheduler.add_job("returns", 30, Probe())

        with pytest.raises(ValueError):
            scheduler.add_job("returns", 30, Probe())
        with pytest.raises(ValueError):
            scheduler.add_job("reports", 0, Probe())

    async def test_unknown_job(self, scheduler):
        with pytest.raises(KeyError):
            await scheduler.run_now("payroll")


class TestNoOverlap:
    async def test_tick_while_fetching_is_skipped(self, scheduler):
        probe = Probe(hold=True)
        job = scheduler.add_job("returns", 30, probe)

        first = asyncio.create_task(scheduler.run_now("returns"))
        await asyncio.sleep(0.01)
        assert job.state == PollState.FETCHING

        assert await scheduler.run_now("returns") == PollOutcome.SKIPPED

        probe.release.set()
        assert await first == PollOutcome.APPLIED
        assert probe.calls == 1
        assert job.skips == 1
        assert job.state == PollState.IDLE

    async def test_failures_return_to_idle(self, scheduler):
        async def broken():
            raise RuntimeError("backend down")

        job = scheduler.add_job("reports", 30, broken)

        assert await scheduler.run_now("reports") == PollOutcome.FAILED
        assert job.failures == 1
        assert job.state == PollState.IDLE

    async def test_runner_may_report_its_outcome(self, scheduler):
        async def degraded():
            return PollOutcome.FAILED

        job = scheduler.add_job("reports", 30, degraded)

        assert await scheduler.run_now("reports") == PollOutcome.FAILED
        assert job.failures == 1
        assert job.runs == 0

    async def test_run_exclusive_propagates_errors(self, scheduler):
        async def broken():
            raise RuntimeError("backend down")

        job = scheduler.add_job("reports", 30, Probe())

        with pytest.raises(RuntimeError):
            await scheduler.run_exclusive("reports", broken)
        assert job.state == PollState.IDLE

    async def test_run_exclusive_respects_the_guard(self, scheduler):
        probe = Probe(hold=True)
        scheduler.add_job("reports", 30, probe)

        first = asyncio.create_task(scheduler.run_now("reports"))
        await asyncio.sleep(0.01)

        assert await scheduler.run_exclusive("reports", Probe()) == PollOutcome.SKIPPED

        probe.release.set()
        await first


class TestTimers:
    async def test_first_poll_runs_on_start(self, scheduler):
        probe = Probe()
        scheduler.add_job("returns", 30, probe)

        scheduler.start("returns")
        await asyncio.sleep(0.05)

        assert scheduler.is_running("returns")
        assert probe.calls == 1

    async def test_polls_repeat_on_a_fixed_period(self, scheduler):
        probe = Probe()
        scheduler.add_job("reports", 0.02, probe)

        scheduler.start("reports")
        await asyncio.sleep(0.15)

        assert probe.calls >= 3

    async def test_slow_fetch_is_not_piled_up(self, scheduler):
        probe = Probe(hold=True)
        job = scheduler.add_job("reports", 0.01, probe)

        scheduler.start("reports")
        await asyncio.sleep(0.08)

        assert probe.calls == 1
        assert job.skips >= 2
        probe.release.set()

    async def test_stop_keeps_in_flight_fetch(self, scheduler):
        probe = Probe(hold=True)
        scheduler.add_job("returns", 30, probe)

        scheduler.start("returns")
        await asyncio.sleep(0.01)
        scheduler.stop("returns")
        assert not scheduler.is_running("returns")

        probe.release.set()
        await scheduler.drain()

        assert probe.finished == 1
        assert probe.cancelled is False

    async def test_aclose_cancels_everything(self):
        scheduler = PollScheduler()
        probe = Probe(hold=True)
        scheduler.add_job("returns", 30, probe)

        scheduler.start("returns")
        await asyncio.sleep(0.01)
        await scheduler.aclose()

        assert probe.cancelled is True
        assert not scheduler.is_running("returns")
        assert await scheduler.run_now("returns") == PollOutcome.SKIPPED
        with pytest.raises(RuntimeError):
            scheduler.start("returns")


class TestMount:
    async def test_mounts_are_reference_counted(self, scheduler):
        scheduler.add_job("returns", 30, Probe())

        async with scheduler.mount("returns"):
            async with scheduler.mount("returns"):
                assert scheduler.is_running("returns")
            assert scheduler.is_running("returns")

        assert not scheduler.is_running("returns")

    async def test_unmount_keeps_app_wide_polling(self, scheduler):
        probe = Probe()
        scheduler.add_job("returns", 0.01, probe)
        scheduler.add_job("reports", 30, Probe())
        scheduler.start_all()

        async with scheduler.mount("returns"):
            assert scheduler.is_running("returns")

        assert scheduler.is_running("returns")
        assert scheduler.is_running("reports")

        calls = probe.calls
        await asyncio.sleep(0.05)
        assert probe.calls > calls

    async def test_stop_waits_for_mounted_views(self, scheduler):
        scheduler.add_job("returns", 30, Probe())
        scheduler.start("returns")

        async with scheduler.mount("returns"):
            scheduler.stop("returns")
            assert scheduler.is_running("returns")

        assert not scheduler.is_running("returns")

    async def test_aclose_while_mounted(self):
        scheduler = PollScheduler()
        scheduler.add_job("returns", 30, Probe())

        async with scheduler.mount("returns"):
            await scheduler.aclose()

        assert not scheduler.is_running("returns")

    async def test_timer_released_when_view_fails(self, scheduler):
        scheduler.add_job("returns", 30, Probe())

        with pytest.raises(RuntimeError):
            async with scheduler.mount("returns"):
                raise RuntimeError("view crashed")

        assert not scheduler.is_running("returns")

    async def test_unknown_job_starts_nothing(self, scheduler):
        scheduler.add_job("returns", 30, Probe())

        with pytest.raises(KeyError):
            async with scheduler.mount("returns", "payroll"):
                pass

        assert not scheduler.is_running("returns")
