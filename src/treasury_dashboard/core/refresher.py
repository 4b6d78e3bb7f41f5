"""Single-flight dashboard refresh with last-good-snapshot retention."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from treasury_dashboard.core.aggregator import DashboardAggregator
from treasury_dashboard.core.models import DashboardSnapshot

logger = logging.getLogger(__name__)


class DashboardRefresher:
    """
    Runs at most one aggregation at a time and remembers the last result.

    Callers that ask for a refresh while one is in flight share its result
    (``refresh``) or are dropped (``tick``). The last successful snapshot is
    kept when a later refresh fails, so a consumer never loses data it
    already showed.

    Parameters
    ----------
    aggregator : DashboardAggregator
        Aggregator producing snapshots

    """

    def __init__(self, aggregator: DashboardAggregator) -> None:
        self.aggregator = aggregator
        self.snapshot: DashboardSnapshot | None = None
        self.last_error: str | None = None
        self.last_refresh: float | None = None
        self._inflight: asyncio.Task[DashboardSnapshot] | None = None

    @property
    def in_flight(self) -> bool:
        """Whether an aggregation is currently running."""
        return self._inflight is not None and not self._inflight.done()

    async def _run(self) -> DashboardSnapshot:
        try:
            snapshot = await self.aggregator.aggregate()
        except Exception as e:
            self.last_error = str(e) or e.__class__.__name__
            logger.exception("Dashboard refresh failed")
            raise
        self.snapshot = snapshot
        self.last_error = None
        self.last_refresh = time.time()
        return snapshot

    async def refresh(self) -> DashboardSnapshot:
        """
        Return a fresh snapshot, joining the in-flight aggregation if any.

        Returns
        -------
        DashboardSnapshot
            Newly built snapshot

        Raises
        ------
        Exception
            Whatever the aggregation raised; the previous snapshot is kept

        """
        if not self.in_flight:
            self._inflight = asyncio.create_task(self._run())
        # Shield so one cancelled waiter does not cancel the shared task.
        return await asyncio.shield(self._inflight)

    async def tick(self) -> bool:
        """
        Timer-driven refresh that is skipped while another is in flight.

        Returns
        -------
        bool
            True if a refresh ran and succeeded, False if it was skipped or
            failed

        """
        if self.in_flight:
            logger.debug("Refresh already in flight, dropping tick")
            return False
        try:
            await self.refresh()
        except Exception:
            return False
        return True

    async def run(
        self,
        interval: float,
        on_update: Callable[["DashboardRefresher"], Awaitable[None] | None] | None = None,
        iterations: int | None = None,
    ) -> None:
        """
        Refresh on a fixed interval.

        Parameters
        ----------
        interval : float
            Seconds between ticks
        on_update : Callable | None
            Called with the refresher after every tick, successful or not
        iterations : int | None
            Stop after this many ticks; run forever if None

        """
        count = 0
        while iterations is None or count < iterations:
            await self.tick()
            if on_update is not None:
                result = on_update(self)
                if asyncio.iscoroutine(result):
                    await result
            count += 1
            if iterations is None or count < iterations:
                await asyncio.sleep(interval)

    def current(self) -> DashboardSnapshot:
        """Last good snapshot, or the zeroed placeholder if none yet."""
        return self.snapshot or DashboardSnapshot.empty()
