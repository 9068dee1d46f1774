from __future__ import annotations

import asyncio
import logging
from typing import Literal

from ingest.aggregator import AggregationResult, Aggregator


logger = logging.getLogger(__name__)

SchedulerState = Literal["idle", "running"]


class RefreshScheduler:
    """Periodic and manual refreshes, at most one aggregation at a time.

    A trigger that arrives while a run is in flight is dropped, not queued.
    """

    def __init__(self, aggregator: Aggregator, *, interval_seconds: float) -> None:
        self.aggregator = aggregator
        self.interval_seconds = interval_seconds
        self.last_result: AggregationResult | None = None
        self._running = False
        self._background: set[asyncio.Task] = set()

    @property
    def state(self) -> SchedulerState:
        return "running" if self._running else "idle"

    async def trigger(self) -> bool:
        """Run one refresh now and wait for it; False if one is already running."""
        if self._running:
            logger.debug("refresh already running; trigger dropped")
            return False
        self._running = True
        await self._run_claimed()
        return True

    def start(self) -> bool:
        """Like ``trigger`` but returns immediately; the run continues as a task."""
        if self._running:
            logger.debug("refresh already running; trigger dropped")
            return False
        self._running = True
        task = asyncio.create_task(self._run_claimed())
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return True

    async def run_forever(self) -> None:
        while True:
            await self.trigger()
            await asyncio.sleep(self.interval_seconds)

    def clear_errors(self) -> None:
        self.aggregator.ledger.clear_errors()

    async def _run_claimed(self) -> None:
        try:
            self.last_result = await self.aggregator.run()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("refresh failed")
        finally:
            self._running = False
