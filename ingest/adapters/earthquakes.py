from __future__ import annotations

from datetime import datetime, timedelta

import httpx

from ingest.adapters.base import AdapterContext, SourceAdapter
from ingest.errors import MalformedPayload
from ingest.fetch import fetch_json
from ingest.parsers.geojson import parse_feature_collection
from ingest.schemas import UsgsFeature
from normalize.models import Event
from normalize.normalize import normalize_usgs_earthquake


# (id, magnitude, place, lat, lng, depth km, hours ago)
_FALLBACK_QUAKES: list[tuple[str, float, str, float, float, float, float]] = [
    ("honshu", 6.2, "Near east coast of Honshu, Japan", 38.2975, 142.3731, 29.0, 3.0),
    ("ridgecrest", 4.4, "15 km SW of Ridgecrest, CA", 35.5250, -117.7830, 8.2, 9.0),
    ("kermadec", 7.1, "Kermadec Islands, New Zealand", -29.9500, -177.8600, 35.0, 30.0),
    ("anchorage", 3.6, "22 km N of Anchorage, Alaska", 61.4160, -149.8820, 40.5, 1.5),
    ("sumatra", 5.6, "Southern Sumatra, Indonesia", -4.5200, 101.3700, 52.0, 80.0),
]


def fallback_features(now: datetime) -> list[UsgsFeature]:
    features: list[UsgsFeature] = []
    for key, mag, place, lat, lng, depth, hours_ago in _FALLBACK_QUAKES:
        occurred_at = now - timedelta(hours=hours_ago)
        features.append(
            UsgsFeature.model_validate(
                {
                    "id": f"fallback-{key}",
                    "properties": {
                        "mag": mag,
                        "place": place,
                        "time": int(occurred_at.timestamp() * 1000),
                        "title": f"M {mag:.1f} - {place}",
                    },
                    "geometry": {"type": "Point", "coordinates": [lng, lat, depth]},
                }
            )
        )
    return features


class EarthquakeAdapter(SourceAdapter):
    name = "earthquakes"
    label = "USGS Earthquakes"

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

        features = self.validate_records(UsgsFeature, records)
        return [self._normalize(f, now) for f in features[: self.context.max_events]]

    def fallback(self, now: datetime) -> list[Event]:
        return [self._normalize(f, now) for f in fallback_features(now)]

    def _normalize(self, feature: UsgsFeature, now: datetime) -> Event:
        return normalize_usgs_earthquake(
            feature=feature,
            now=now,
            gazetteer=self.context.gazetteer,
            source=self.name,
            jitter=self.context.jitter,
        )
