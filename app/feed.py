from __future__ import annotations

from datetime import datetime

import httpx

from app.settings import Settings
from geo.gazetteer import load_gazetteer
from health.ledger import SourceState, StatusLedger
from ingest.aggregator import Aggregator
from ingest.scheduler import RefreshScheduler
from ingest.sources import build_adapters
from normalize.impact import jitter_from_seed
from normalize.models import ErrorRecord, Event, FilterSpec
from query.filters import filter_events
from store.snapshot import SnapshotStore


class HazardFeed:
    """Read side for the map client: current events, source health, refresh."""

    def __init__(
        self,
        *,
        store: SnapshotStore,
        ledger: StatusLedger,
        scheduler: RefreshScheduler,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self.scheduler = scheduler

    @property
    def events(self) -> tuple[Event, ...]:
        return self._store.current.events

    @property
    def refreshed_at(self) -> datetime | None:
        return self._store.current.refreshed_at

    @property
    def status(self) -> dict[str, SourceState]:
        return {source: self._ledger.state(source) for source in self._ledger.sources}

    @property
    def errors(self) -> list[ErrorRecord]:
        return self._ledger.errors

    @property
    def last_updated(self) -> dict[str, datetime]:
        return self._ledger.last_updated()

    @property
    def is_loading(self) -> bool:
        return self.scheduler.state == "running"

    def status_report(self) -> dict:
        report = self._ledger.to_dict()
        report["refreshing"] = self.is_loading
        report["refreshed_at"] = (
            self.refreshed_at.isoformat().replace("+00:00", "Z")
            if self.refreshed_at
            else None
        )
        return report

    async def refresh(self) -> bool:
        return await self.scheduler.trigger()

    def start_refresh(self) -> bool:
        return self.scheduler.start()

    def clear_errors(self) -> None:
        self.scheduler.clear_errors()

    def filtered(self, spec: FilterSpec) -> list[Event]:
        # One snapshot read so the result never mixes two runs.
        return filter_events(self._store.current.events, spec)


def build_feed(
    settings: Settings, *, client: httpx.AsyncClient | None = None
) -> HazardFeed:
    gazetteer = load_gazetteer(settings.places_path)
    adapters = build_adapters(
        settings, gazetteer, jitter_from_seed(settings.demo_jitter_seed)
    )
    ledger = StatusLedger(
        [a.name for a in adapters], error_limit=settings.error_log_limit
    )
    store = SnapshotStore()
    aggregator = Aggregator(
        adapters,
        ledger=ledger,
        store=store,
        timeout_seconds=settings.source_timeout_seconds,
        synthetic_only=settings.synthetic_only,
        client=client,
    )
    scheduler = RefreshScheduler(
        aggregator, interval_seconds=settings.refresh_interval_seconds
    )
    return HazardFeed(store=store, ledger=ledger, scheduler=scheduler)
