"""Tests for the opportunistic, rate-limited sweep scheduler."""

import asyncio

import pytest

from services.scheduler import SweepScheduler
from services.sweeper import SweepResult


class FakeSweeper:
    def __init__(self, delay: float = 0, error: Exception | None = None):
        self.delay = delay
        self.error = error
        self.calls = 0

    async def sweep(self, dry_run: bool = False) -> SweepResult:
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SweepResult(completed_ids=[f"evt-{self.calls}"], dry_run=dry_run)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestSweepScheduler:
    """Test refresh window and single-flight behaviour."""

    @pytest.mark.asyncio
    async def test_trigger_is_rate_limited(self):
        sweeper, clock = FakeSweeper(), FakeClock()
        scheduler = SweepScheduler(sweeper, refresh_interval=300, wait_timeout=1, clock=clock)

        first = await scheduler.trigger()
        second = await scheduler.trigger()
        clock.now += 301
        third = await scheduler.trigger()

        assert first.completed_ids == ["evt-1"]
        assert second is None
        assert third.completed_ids == ["evt-2"]
        assert sweeper.calls == 2

    @pytest.mark.asyncio
    async def test_concurrent_triggers_share_one_run(self):
        sweeper = FakeSweeper(delay=0.05)
        scheduler = SweepScheduler(sweeper, refresh_interval=300, wait_timeout=1, clock=FakeClock())

        results = await asyncio.gather(*(scheduler.trigger() for _ in range(5)))

        assert sweeper.calls == 1
        assert all(result is not None and result.completed_ids == ["evt-1"] for result in results)
        assert not scheduler.in_flight

    @pytest.mark.asyncio
    async def test_trigger_swallows_failures_and_run_propagates(self):
        sweeper = FakeSweeper(error=RuntimeError("base de dados indisponível"))
        clock = FakeClock()
        scheduler = SweepScheduler(sweeper, refresh_interval=300, wait_timeout=1, clock=clock)

        assert await scheduler.trigger() is None
        assert not scheduler.in_flight

        with pytest.raises(RuntimeError):
            await scheduler.run()
        assert sweeper.calls == 2

    @pytest.mark.asyncio
    async def test_failed_run_still_counts_for_the_window(self):
        sweeper = FakeSweeper(error=RuntimeError("falhou"))
        clock = FakeClock()
        scheduler = SweepScheduler(sweeper, refresh_interval=300, wait_timeout=1, clock=clock)

        await scheduler.trigger()
        clock.now += 10
        await scheduler.trigger()

        assert sweeper.calls == 1
        assert not scheduler.is_due()

    @pytest.mark.asyncio
    async def test_slow_sweep_does_not_block_the_request(self):
        sweeper = FakeSweeper(delay=0.2)
        scheduler = SweepScheduler(sweeper, refresh_interval=300, wait_timeout=0.01, clock=FakeClock())

        assert await scheduler.trigger() is None
        assert scheduler.in_flight

        await scheduler.wait_idle()
        assert not scheduler.in_flight
        assert sweeper.calls == 1

    @pytest.mark.asyncio
    async def test_trigger_joins_run_in_flight_outside_window(self):
        sweeper = FakeSweeper(delay=0.05)
        scheduler = SweepScheduler(sweeper, refresh_interval=300, wait_timeout=1, clock=FakeClock())

        running = asyncio.create_task(scheduler.run())
        await asyncio.sleep(0)
        joined = await scheduler.trigger()

        assert joined is not None
        assert (await running).completed_ids == joined.completed_ids
        assert sweeper.calls == 1

    @pytest.mark.asyncio
    async def test_run_ignores_refresh_window(self):
        sweeper = FakeSweeper()
        scheduler = SweepScheduler(sweeper, refresh_interval=300, wait_timeout=1, clock=FakeClock())

        await scheduler.run()
        await scheduler.run()

        assert sweeper.calls == 2
