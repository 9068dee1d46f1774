from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Literal

from normalize.models import ErrorRecord


SourceState = Literal["idle", "loading", "success", "error"]


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def _iso_or_none(ts: datetime | None) -> str | None:
    return ts.isoformat().replace("+00:00", "Z") if ts is not None else None


@dataclass
class SourceStatus:
    state: SourceState = "idle"
    last_success_at: datetime | None = None
    last_error_at: datetime | None = None
    last_error: str | None = None
    consecutive_failures: int = 0

    def to_dict(self) -> dict:
        return {
            "state": self.state,
            "last_success_at": _iso_or_none(self.last_success_at),
            "last_error_at": _iso_or_none(self.last_error_at),
            "last_error": self.last_error,
            "consecutive_failures": self.consecutive_failures,
        }


class StatusLedger:
    """Per-source health and freshness, plus a bounded log of recent errors.

    Written only by the aggregator and the refresh scheduler; anyone may read.
    """

    def __init__(self, sources: Iterable[str], *, error_limit: int = 50) -> None:
        self._entries: dict[str, SourceStatus] = {s: SourceStatus() for s in sources}
        self._errors: deque[ErrorRecord] = deque(maxlen=error_limit)

    @property
    def sources(self) -> list[str]:
        return list(self._entries)

    @property
    def errors(self) -> list[ErrorRecord]:
        return list(self._errors)

    def entry(self, source: str) -> SourceStatus:
        return self._entries.setdefault(source, SourceStatus())

    def state(self, source: str) -> SourceState:
        return self.entry(source).state

    def mark_loading(self, source: str) -> None:
        self.entry(source).state = "loading"

    def mark_success(self, source: str, timestamp: datetime) -> None:
        entry = self.entry(source)
        entry.state = "success"
        entry.last_success_at = timestamp
        entry.consecutive_failures = 0
        entry.last_error = None

    def mark_error(
        self, source: str, message: str, timestamp: datetime, *, record: bool = True
    ) -> None:
        entry = self.entry(source)
        entry.state = "error"
        entry.last_error = message
        entry.last_error_at = timestamp
        entry.consecutive_failures += 1
        if record:
            self.record_error(source, message, timestamp)

    def record_error(self, source: str, message: str, timestamp: datetime) -> None:
        self._errors.append(
            ErrorRecord(source=source, message=message, timestamp=timestamp)
        )

    def clear_errors(self) -> None:
        self._errors.clear()

    def is_healthy(self) -> bool:
        if self._errors:
            return False
        return all(e.state == "success" for e in self._entries.values())

    def time_since_last_update(
        self, source: str, now: datetime | None = None
    ) -> timedelta | None:
        entry = self._entries.get(source)
        if entry is None or entry.last_success_at is None:
            return None
        return (now or _utc_now()) - entry.last_success_at

    def last_updated(self) -> dict[str, datetime]:
        return {
            source: entry.last_success_at
            for source, entry in self._entries.items()
            if entry.last_success_at is not None
        }

    def to_dict(self) -> dict:
        return {
            "healthy": self.is_healthy(),
            "sources": {s: e.to_dict() for s, e in self._entries.items()},
            "errors": [e.to_dict() for e in self._errors],
            "last_updated": {
                s: _iso_or_none(ts) for s, ts in self.last_updated().items()
            },
        }
