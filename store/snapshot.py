from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from normalize.models import Event


@dataclass(frozen=True)
class Snapshot:
    events: tuple[Event, ...]
    refreshed_at: datetime | None


class SnapshotStore:
    """Holds the published event collection.

    ``publish`` swaps in a whole new snapshot; readers holding the previous
    one keep a complete, unchanged view.
    """

    def __init__(self) -> None:
        self._current = Snapshot(events=(), refreshed_at=None)

    @property
    def current(self) -> Snapshot:
        return self._current

    def publish(self, events: Iterable[Event], refreshed_at: datetime) -> Snapshot:
        snapshot = Snapshot(events=tuple(events), refreshed_at=refreshed_at)
        self._current = snapshot
        return snapshot
