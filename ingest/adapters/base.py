from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from geo.gazetteer import Gazetteer, Place
from ingest.errors import MalformedPayload, SourceError, SourceUnavailable
from normalize.impact import NO_JITTER, Jitter
from normalize.models import Event


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class AdapterContext:
    user_agent: str
    timeout_seconds: float
    gazetteer: Gazetteer
    jitter: Jitter = NO_JITTER
    max_events: int = 200


class SourceAdapter:
    """One upstream feed: fetch, validate, normalize, and a fallback data set.

    ``fetch`` raises a ``SourceError`` when no live events can be produced;
    the aggregator decides whether to use ``fallback`` instead.
    """

    name: str = ""
    label: str = ""
    has_fallback: bool = True

    def __init__(self, context: AdapterContext) -> None:
        self.context = context

    async def fetch(self, client: httpx.AsyncClient, now: datetime) -> list[Event]:
        raise NotImplementedError

    def fallback(self, now: datetime) -> list[Event]:
        return []

    def validate(self, model: type[ModelT], doc: object) -> ModelT:
        try:
            return model.model_validate(doc)
        except ValidationError as e:
            raise MalformedPayload(self.name, "schema_error", str(e.errors()[0]["loc"])) from e

    def validate_records(self, model: type[ModelT], records: list) -> list[ModelT]:
        """Validate records one by one, skipping bad ones.

        A non-empty payload in which nothing validates is a malformed feed.
        """
        valid: list[ModelT] = []
        for record in records:
            try:
                valid.append(model.model_validate(record))
            except ValidationError:
                continue
        skipped = len(records) - len(valid)
        if records and not valid:
            raise MalformedPayload(self.name, "schema_error", "no valid records")
        if skipped:
            logger.debug("%s: skipped %d malformed records", self.name, skipped)
        return valid

    async def fetch_per_city(
        self,
        cities: list[Place],
        fetch_one: Callable[[Place], Awaitable[Event | None]],
    ) -> list[Event]:
        """Query every city concurrently; fail only when every city failed."""
        if not cities:
            return []
        outcomes = await asyncio.gather(
            *(fetch_one(city) for city in cities), return_exceptions=True
        )

        events: list[Event] = []
        failures: list[BaseException] = []
        for city, outcome in zip(cities, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.debug("%s: %s failed: %s", self.name, city.name, outcome)
                failures.append(outcome)
                continue
            if outcome is not None:
                events.append(outcome)

        if len(failures) == len(cities):
            first = failures[0]
            if isinstance(first, SourceError):
                raise first
            raise SourceUnavailable(self.name, "all_cities_failed") from first
        return events
