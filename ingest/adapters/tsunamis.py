from __future__ import annotations

from datetime import datetime

import httpx

from ingest.adapters.base import AdapterContext, SourceAdapter
from ingest.errors import MalformedPayload
from ingest.fetch import fetch_json
from ingest.parsers.geojson import parse_feature_collection
from ingest.schemas import UsgsFeature
from normalize.models import Event
from normalize.normalize import normalize_tsunami


class TsunamiAdapter(SourceAdapter):
    """Earthquakes the USGS feed flags with tsunami potential.

    Tsunamis are rare, so a failed fetch contributes nothing rather than
    synthetic warnings.
    """

    name = "tsunamis"
    label = "Tsunami Warnings"
    has_fallback = False

    def __init__(self, context: AdapterContext, *, url: str) -> None:
        super().__init__(context)
        self.url = url

    async def fetch(self, client: httpx.AsyncClient, now: datetime) -> list[Event]:
        doc = await fetch_json(
            client,
            source=self.name,
            url=self.url,
            user_agent=self.context.user_agent,
            timeout_seconds=self.context.timeout_seconds,
        )
        try:
            records = parse_feature_collection(doc)
        except ValueError as e:
            raise MalformedPayload(self.name, "schema_error", str(e)) from e

        features = [
            f for f in self.validate_records(UsgsFeature, records) if f.properties.tsunami
        ]
        return [
            normalize_tsunami(
                feature=f,
                now=now,
                gazetteer=self.context.gazetteer,
                source=self.name,
                jitter=self.context.jitter,
            )
            for f in features[: self.context.max_events]
        ]
