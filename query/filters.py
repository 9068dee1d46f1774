from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from normalize.models import EVENT_TYPES, SEVERITIES, Event, FilterSpec
from normalize.normalize import parse_iso


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _parse_bound(value: str | datetime | None) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return parse_iso(value)


def spec_from_query(
    *,
    types: str | None = None,
    severities: str | None = None,
    active_only: bool = False,
    start: str | datetime | None = None,
    end: str | datetime | None = None,
) -> FilterSpec:
    """Build a FilterSpec from comma-separated query values.

    Empty lists mean "everything". Unknown names raise ValueError.
    """
    type_list = _split_csv(types)
    severity_list = [s.casefold() for s in _split_csv(severities)]
    unknown = [t for t in type_list if t not in EVENT_TYPES]
    unknown += [s for s in severity_list if s not in SEVERITIES]
    if unknown:
        raise ValueError(f"unknown filter values: {', '.join(unknown)}")

    return FilterSpec.build(
        types=type_list or None,
        severities=severity_list or None,
        active_only=active_only,
        start=_parse_bound(start),
        end=_parse_bound(end),
    )


def matches(event: Event, spec: FilterSpec) -> bool:
    if event.type not in spec.types:
        return False
    if event.severity not in spec.severities:
        return False
    if spec.active_only and event.status != "active":
        return False
    if spec.start is None and spec.end is None:
        return True
    occurred_at = parse_iso(event.date)
    if spec.start is not None and occurred_at < spec.start:
        return False
    if spec.end is not None and occurred_at > spec.end:
        return False
    return True


def filter_events(events: Iterable[Event], spec: FilterSpec) -> list[Event]:
    return [e for e in events if matches(e, spec)]
