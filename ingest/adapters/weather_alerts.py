from __future__ import annotations

from datetime import datetime, timedelta

import httpx

from ingest.adapters.base import AdapterContext, SourceAdapter
from ingest.errors import MalformedPayload
from ingest.fetch import fetch_json
from ingest.parsers.geojson import parse_feature_collection
from ingest.schemas import NwsAlertFeature
from normalize.models import Event
from normalize.normalize import normalize_nws_alert, to_iso


def _box(lat: float, lng: float, half: float) -> dict:
    ring = [
        [lng - half, lat - half],
        [lng + half, lat - half],
        [lng + half, lat + half],
        [lng - half, lat + half],
    ]
    return {"type": "Polygon", "coordinates": [ring]}


# (key, event, upstream severity, area, lat, lng, hours ago, hours until expiry)
_FALLBACK_ALERTS: list[tuple[str, str, str, str, float, float, float, float]] = [
    ("tornado-ok", "Tornado Warning", "Severe", "Oklahoma, OK", 35.4676, -97.5164, 0.5, 1.0),
    ("flood-la", "Flood Warning", "Moderate", "Orleans, LA", 29.9511, -90.0715, 6.0, 18.0),
    ("heat-az", "Excessive Heat Warning", "Extreme", "Maricopa, AZ", 33.4484, -112.0740, 12.0, 24.0),
    ("hurricane-fl", "Hurricane Warning", "Extreme", "Miami-Dade, FL", 25.7617, -80.1918, 2.0, 36.0),
    ("winter-mn", "Winter Storm Watch", "Minor", "Hennepin, MN", 44.9778, -93.2650, 3.0, 30.0),
]


def fallback_alerts(now: datetime) -> list[NwsAlertFeature]:
    features: list[NwsAlertFeature] = []
    for key, event, severity, area, lat, lng, hours_ago, expires_in in _FALLBACK_ALERTS:
        features.append(
            NwsAlertFeature.model_validate(
                {
                    "id": f"fallback-{key}",
                    "properties": {
                        "event": event,
                        "headline": f"{event} issued for {area}",
                        "severity": severity,
                        "areaDesc": area,
                        "effective": to_iso(now - timedelta(hours=hours_ago)),
                        "expires": to_iso(now + timedelta(hours=expires_in)),
                    },
                    "geometry": _box(lat, lng, 0.25),
                }
            )
        )
    return features


class WeatherAlertAdapter(SourceAdapter):
    name = "weather"
    label = "NWS Weather Alerts"

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
            extra_headers={"Accept": "application/geo+json"},
        )
        try:
            records = parse_feature_collection(doc)
        except ValueError as e:
            raise MalformedPayload(self.name, "schema_error", str(e)) from e

        features = self.validate_records(NwsAlertFeature, records)
        return [self._normalize(f, now) for f in features[: self.context.max_events]]

    def fallback(self, now: datetime) -> list[Event]:
        return [self._normalize(f, now) for f in fallback_alerts(now)]

    def _normalize(self, feature: NwsAlertFeature, now: datetime) -> Event:
        return normalize_nws_alert(
            feature=feature, now=now, source=self.name, jitter=self.context.jitter
        )
