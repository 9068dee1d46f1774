from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

import httpx

from cluster.dedupe import dedupe_events
from health.ledger import StatusLedger
from ingest.adapters.base import SourceAdapter
from ingest.errors import MissingCredentials, SourceError
from normalize.models import Event
from store.snapshot import SnapshotStore


logger = logging.getLogger(__name__)

AGGREGATOR_SOURCE = "aggregator"


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def failure_message(exc: BaseException) -> str:
    if isinstance(exc, SourceError):
        return exc.message
    if isinstance(exc, TimeoutError):
        return "timeout"
    return f"unexpected:{exc.__class__.__name__}"


@dataclass(frozen=True)
class SourceOutcome:
    source: str
    ok: bool
    count: int
    error: str | None = None
    used_fallback: bool = False


@dataclass(frozen=True)
class AggregationResult:
    events: tuple[Event, ...]
    outcomes: dict[str, SourceOutcome] = field(default_factory=dict)
    refreshed_at: datetime | None = None
    published: bool = True


class Aggregator:
    """Runs every adapter concurrently and publishes one merged snapshot.

    A source that fails contributes its fallback (or nothing) and an error
    record; it never stops the other sources. If the run itself blows up,
    the previously published snapshot stays in place.
    """

    def __init__(
        self,
        adapters: list[SourceAdapter],
        *,
        ledger: StatusLedger,
        store: SnapshotStore,
        timeout_seconds: float,
        synthetic_only: bool = False,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.adapters = adapters
        self.ledger = ledger
        self.store = store
        self.timeout_seconds = timeout_seconds
        self.synthetic_only = synthetic_only
        self._client = client

    async def run(self, now: datetime | None = None) -> AggregationResult:
        now = now or _utc_now()
        for adapter in self.adapters:
            self.ledger.mark_loading(adapter.name)
        self.ledger.clear_errors()

        outcomes: dict[str, SourceOutcome] = {}
        try:
            if self.synthetic_only:
                events = self._collect_synthetic(now, outcomes)
            elif self._client is not None:
                events = await self._collect(self._client, now, outcomes)
            else:
                async with httpx.AsyncClient(follow_redirects=True) as client:
                    events = await self._collect(client, now, outcomes)

            merged = dedupe_events(events)
            snapshot = self.store.publish(merged, now)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("aggregation run failed; keeping previous snapshot")
            self._record_run_failure(e, now)
            previous = self.store.current
            return AggregationResult(
                events=previous.events,
                outcomes=outcomes,
                refreshed_at=previous.refreshed_at,
                published=False,
            )

        failed = [o.source for o in outcomes.values() if not o.ok]
        logger.info(
            "refresh complete: %d events from %d sources (%d failed%s)",
            len(snapshot.events),
            len(outcomes),
            len(failed),
            f": {', '.join(failed)}" if failed else "",
        )
        return AggregationResult(
            events=snapshot.events, outcomes=outcomes, refreshed_at=now
        )

    async def _run_adapter(
        self, adapter: SourceAdapter, client: httpx.AsyncClient, now: datetime
    ) -> list[Event]:
        # Per-request timeouts live in fetch; this caps adapters that make
        # several requests.
        return await asyncio.wait_for(
            adapter.fetch(client, now), timeout=self.timeout_seconds * 2
        )

    async def _collect(
        self,
        client: httpx.AsyncClient,
        now: datetime,
        outcomes: dict[str, SourceOutcome],
    ) -> list[Event]:
        results = await asyncio.gather(
            *(self._run_adapter(a, client, now) for a in self.adapters),
            return_exceptions=True,
        )

        events: list[Event] = []
        for adapter, result in zip(self.adapters, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                events.extend(self._handle_failure(adapter, result, now, outcomes))
                continue
            self.ledger.mark_success(adapter.name, now)
            outcomes[adapter.name] = SourceOutcome(
                source=adapter.name, ok=True, count=len(result)
            )
            events.extend(result)
        return events

    def _handle_failure(
        self,
        adapter: SourceAdapter,
        exc: Exception,
        now: datetime,
        outcomes: dict[str, SourceOutcome],
    ) -> list[Event]:
        message = failure_message(exc)
        if isinstance(exc, MissingCredentials):
            logger.info("%s: not configured (%s)", adapter.name, message)
        elif isinstance(exc, SourceError | TimeoutError):
            logger.warning("%s: fetch failed (%s)", adapter.name, message)
        else:
            logger.warning(
                "%s: adapter raised %s", adapter.name, message, exc_info=exc
            )
        self.ledger.mark_error(adapter.name, message, now)

        fallback: list[Event] = []
        if adapter.has_fallback:
            fallback = self._fallback(adapter, now)
        outcomes[adapter.name] = SourceOutcome(
            source=adapter.name,
            ok=False,
            count=len(fallback),
            error=message,
            used_fallback=bool(fallback),
        )
        return fallback

    def _fallback(self, adapter: SourceAdapter, now: datetime) -> list[Event]:
        try:
            return adapter.fallback(now)
        except Exception:
            logger.exception("%s: fallback generation failed", adapter.name)
            return []

    def _collect_synthetic(
        self, now: datetime, outcomes: dict[str, SourceOutcome]
    ) -> list[Event]:
        events: list[Event] = []
        for adapter in self.adapters:
            fallback = self._fallback(adapter, now)
            self.ledger.mark_success(adapter.name, now)
            outcomes[adapter.name] = SourceOutcome(
                source=adapter.name,
                ok=True,
                count=len(fallback),
                used_fallback=True,
            )
            events.extend(fallback)
        return events

    def _record_run_failure(self, exc: Exception, now: datetime) -> None:
        message = failure_message(exc)
        self.ledger.record_error(AGGREGATOR_SOURCE, message, now)
        for adapter in self.adapters:
            if self.ledger.state(adapter.name) == "loading":
                self.ledger.mark_error(adapter.name, message, now, record=False)
