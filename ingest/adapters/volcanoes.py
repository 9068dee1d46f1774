from __future__ import annotations

from datetime import datetime, timedelta

import httpx

from ingest.adapters.base import AdapterContext, SourceAdapter
from ingest.errors import MalformedPayload
from ingest.fetch import fetch_json
from ingest.parsers.geojson import parse_feature_collection
from ingest.schemas import VolcanoFeature
from normalize.models import Event
from normalize.normalize import normalize_volcano


# Known restless volcanoes shown when the status feed is down or malformed.
# (vnum, name, lat, lng, alert level, color code, hours since last notice)
_FALLBACK_VOLCANOES: list[tuple[str, str, float, float, str, str, float]] = [
    ("332010", "Kilauea", 19.421, -155.287, "watch", "orange", 6.0),
    ("211060", "Etna", 37.748, 14.999, "advisory", "yellow", 20.0),
    ("341090", "Popocatepetl", 19.023, -98.622, "advisory", "yellow", 30.0),
    ("282080", "Sakurajima", 31.593, 130.657, "watch", "orange", 12.0),
    ("263250", "Merapi", -7.54, 110.446, "warning", "red", 2.0),
    ("371030", "Reykjanes", 63.817, -22.717, "normal", "green", 96.0),
]


def fallback_volcanoes(now: datetime) -> list[VolcanoFeature]:
    features: list[VolcanoFeature] = []
    for vnum, name, lat, lng, alert, color, hours_ago in _FALLBACK_VOLCANOES:
        sent = (now - timedelta(hours=hours_ago)).strftime("%Y-%m-%d %H:%M:%S")
        features.append(
            VolcanoFeature.model_validate(
                {
                    "id": vnum,
                    "properties": {
                        "volcanoName": name,
                        "alertLevel": alert,
                        "colorCode": color,
                        "sentUtc": sent,
                        "vnum": vnum,
                    },
                    "geometry": {"type": "Point", "coordinates": [lng, lat]},
                }
            )
        )
    return features


class VolcanoAdapter(SourceAdapter):
    name = "volcanoes"
    label = "Volcanic Activity"

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

        features = self.validate_records(VolcanoFeature, records)
        return [self._normalize(f, now) for f in features[: self.context.max_events]]

    def fallback(self, now: datetime) -> list[Event]:
        return [self._normalize(f, now) for f in fallback_volcanoes(now)]

    def _normalize(self, feature: VolcanoFeature, now: datetime) -> Event:
        return normalize_volcano(
            feature=feature,
            now=now,
            gazetteer=self.context.gazetteer,
            source=self.name,
            jitter=self.context.jitter,
        )
