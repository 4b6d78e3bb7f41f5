"""Tests for single-flight dashboard refresh."""

import asyncio

import pytest

from treasury_dashboard.core.models import DashboardSnapshot
from treasury_dashboard.core.refresher import DashboardRefresher


class StubAggregator:
    """Aggregator that counts calls and can be held open or made to fail."""

    def __init__(self) -> None:
        self.calls = 0
        self.fail = False
        self.release: asyncio.Event | None = None

    async def aggregate(self) -> DashboardSnapshot:
        self.calls += 1
        if self.release is not None:
            await self.release.wait()
        if self.fail:
            raise RuntimeError("indexer unreachable")
        return DashboardSnapshot.empty(last_updated=self.calls)


def test_concurrent_refreshes_share_one_aggregation():
    """Callers arriving during an aggregation get its result."""
    aggregator = StubAggregator()
    refresher = DashboardRefresher(aggregator)

    async def run():
        aggregator.release = asyncio.Event()
        waiters = [asyncio.create_task(refresher.refresh()) for _ in range(5)]
        await asyncio.sleep(0)
        assert refresher.in_flight
        aggregator.release.set()
        return await asyncio.gather(*waiters)

    results = asyncio.run(run())

    assert aggregator.calls == 1
    assert all(result is results[0] for result in results)
    assert refresher.snapshot is results[0]
    assert not refresher.in_flight


def test_sequential_refreshes_aggregate_again():
    """A refresh after the previous one finished starts a new aggregation."""
    aggregator = StubAggregator()
    refresher = DashboardRefresher(aggregator)

    async def run():
        first = await refresher.refresh()
        second = await refresher.refresh()
        return first, second

    first, second = asyncio.run(run())

    assert aggregator.calls == 2
    assert (first.last_updated, second.last_updated) == (1, 2)


def test_tick_dropped_while_in_flight():
    """A timer tick during an aggregation is skipped, not queued."""
    aggregator = StubAggregator()
    refresher = DashboardRefresher(aggregator)

    async def run():
        aggregator.release = asyncio.Event()
        first = asyncio.create_task(refresher.tick())
        await asyncio.sleep(0)
        dropped = await refresher.tick()
        aggregator.release.set()
        return await first, dropped

    ran, dropped = asyncio.run(run())

    assert ran is True
    assert dropped is False
    assert aggregator.calls == 1


def test_failure_keeps_last_good_snapshot():
    """A failed refresh records the error and keeps the previous snapshot."""
    aggregator = StubAggregator()
    refresher = DashboardRefresher(aggregator)

    async def run():
        good = await refresher.refresh()
        aggregator.fail = True
        with pytest.raises(RuntimeError):
            await refresher.refresh()
        ticked = await refresher.tick()
        return good, ticked

    good, ticked = asyncio.run(run())

    assert ticked is False
    assert refresher.current() is good
    assert refresher.last_error == "indexer unreachable"


def test_success_clears_error():
    """A successful refresh after a failure clears the error."""
    aggregator = StubAggregator()
    aggregator.fail = True
    refresher = DashboardRefresher(aggregator)

    async def run():
        await refresher.tick()
        assert refresher.last_error is not None
        aggregator.fail = False
        await refresher.tick()

    asyncio.run(run())

    assert refresher.last_error is None
    assert refresher.last_refresh is not None


def test_current_before_first_refresh_is_placeholder():
    """Before any refresh the zeroed placeholder is shown."""
    refresher = DashboardRefresher(StubAggregator())

    assert refresher.current() == DashboardSnapshot.empty()


def test_run_calls_back_every_tick():
    """The polling loop refreshes and reports after every tick."""
    aggregator = StubAggregator()
    refresher = DashboardRefresher(aggregator)
    seen = []

    async def on_update(r):
        seen.append(r.current().last_updated)

    asyncio.run(refresher.run(0, on_update=on_update, iterations=3))

    assert seen == [1, 2, 3]
