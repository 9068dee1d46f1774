from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Literal


EventType = Literal[
    "earthquake",
    "fire",
    "flood",
    "hurricane",
    "tornado",
    "volcano",
    "tsunami",
    "drought",
    "landslide",
    "air_quality",
    "weather",
    "accident",
]
Severity = Literal["low", "medium", "high", "critical"]
EventStatus = Literal["active", "contained", "resolved"]

EVENT_TYPES: tuple[str, ...] = (
    "earthquake",
    "fire",
    "flood",
    "hurricane",
    "tornado",
    "volcano",
    "tsunami",
    "drought",
    "landslide",
    "air_quality",
    "weather",
    "accident",
)
SEVERITIES: tuple[str, ...] = ("low", "medium", "high", "critical")
SEVERITY_RANK: dict[str, int] = {name: i for i, name in enumerate(SEVERITIES)}
STATUSES: tuple[str, ...] = ("active", "contained", "resolved")

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Location:
    lat: float
    lng: float
    country: str = UNKNOWN
    region: str = UNKNOWN

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"latitude out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"longitude out of range: {self.lng}")
        if not self.country:
            object.__setattr__(self, "country", UNKNOWN)
        if not self.region:
            object.__setattr__(self, "region", UNKNOWN)


@dataclass(frozen=True)
class Event:
    id: str
    type: str
    title: str
    description: str
    location: Location
    severity: str
    date: str
    status: str
    source: str
    affected_people: int | None = None
    economic_impact: int | None = None
    metadata: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.type not in EVENT_TYPES:
            raise ValueError(f"unknown event type: {self.type}")
        if self.severity not in SEVERITY_RANK:
            raise ValueError(f"unknown severity: {self.severity}")
        if self.status not in STATUSES:
            raise ValueError(f"unknown status: {self.status}")
        for name in ("affected_people", "economic_impact"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative: {value}")
        if not isinstance(self.metadata, MappingProxyType):
            object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "location": {
                "lat": self.location.lat,
                "lng": self.location.lng,
                "country": self.location.country,
                "region": self.location.region,
            },
            "severity": self.severity,
            "date": self.date,
            "affectedPeople": self.affected_people,
            "economicImpact": self.economic_impact,
            "status": self.status,
            "source": self.source,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class ErrorRecord:
    source: str
    message: str
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "message": self.message,
            "timestamp": self.timestamp.isoformat().replace("+00:00", "Z"),
        }


@dataclass(frozen=True)
class FilterSpec:
    """Which events to show. All predicates are AND-combined."""

    types: frozenset[str]
    severities: frozenset[str]
    active_only: bool = False
    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self) -> None:
        for name in ("start", "end"):
            bound = getattr(self, name)
            if bound is not None and bound.tzinfo is None:
                object.__setattr__(self, name, bound.replace(tzinfo=UTC))

    @classmethod
    def default(cls) -> FilterSpec:
        return cls(types=frozenset(EVENT_TYPES), severities=frozenset(SEVERITIES))

    @classmethod
    def build(
        cls,
        *,
        types: Iterable[str] | None = None,
        severities: Iterable[str] | None = None,
        active_only: bool = False,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> FilterSpec:
        return cls(
            types=frozenset(types) if types is not None else frozenset(EVENT_TYPES),
            severities=frozenset(severities)
            if severities is not None
            else frozenset(SEVERITIES),
            active_only=active_only,
            start=start,
            end=end,
        )
