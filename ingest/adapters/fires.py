from __future__ import annotations

from datetime import datetime, timedelta

import httpx

from ingest.adapters.base import AdapterContext, SourceAdapter
from ingest.errors import MalformedPayload, MissingCredentials
from ingest.fetch import fetch_bytes
from ingest.parsers.csv import parse_csv_records
from ingest.schemas import FirmsHotspot
from normalize.models import Event
from normalize.normalize import normalize_firms_hotspot


FIRMS_BASE_URL = "https://firms.modaps.eosdis.nasa.gov/api/area/csv/"
FIRMS_PRODUCT = "VIIRS_SNPP_NRT"

# (lat, lng, frp MW, hours ago)
_FALLBACK_HOTSPOTS: list[tuple[float, float, float, float]] = [
    (34.3917, -118.5426, 142.6, 4.0),
    (39.7596, -121.6219, 61.3, 7.0),
    (-33.6500, 150.3000, 88.0, 15.0),
    (-9.9700, -63.0300, 24.5, 20.0),
    (62.0300, 129.7300, 7.8, 40.0),
]


def is_low_confidence(hotspot: FirmsHotspot) -> bool:
    value = hotspot.confidence.strip().casefold()
    if value == "l":
        return True
    if value.isdigit():
        return int(value) < 30
    return False


def fallback_hotspots(now: datetime) -> list[FirmsHotspot]:
    hotspots: list[FirmsHotspot] = []
    for lat, lng, frp, hours_ago in _FALLBACK_HOTSPOTS:
        acquired_at = now - timedelta(hours=hours_ago)
        hotspots.append(
            FirmsHotspot(
                latitude=lat,
                longitude=lng,
                frp=frp,
                acq_date=acquired_at.strftime("%Y-%m-%d"),
                acq_time=acquired_at.strftime("%H%M"),
                confidence="n",
                satellite="N",
            )
        )
    return hotspots


class FireAdapter(SourceAdapter):
    name = "fires"
    label = "NASA FIRMS Fires"

    def __init__(self, context: AdapterContext, *, api_key: str | None) -> None:
        super().__init__(context)
        self.api_key = (api_key or "").strip()

    async def fetch(self, client: httpx.AsyncClient, now: datetime) -> list[Event]:
        if not self.api_key:
            raise MissingCredentials(self.name, "FIRMS_API_KEY")

        content = await fetch_bytes(
            client,
            source=self.name,
            url=f"{FIRMS_BASE_URL}{self.api_key}/{FIRMS_PRODUCT}/world/1",
            user_agent=self.context.user_agent,
            timeout_seconds=self.context.timeout_seconds,
        )
        header = content.split(b"\n", 1)[0]
        if b"latitude" not in header:
            # FIRMS answers bad keys with a 200 and a plain-text message.
            raise MalformedPayload(
                self.name, "schema_error", header.decode("utf-8", "replace")[:80]
            )
        try:
            records = parse_csv_records(content)
        except ValueError as e:
            raise MalformedPayload(self.name, "parse_error") from e

        hotspots = [
            h
            for h in self.validate_records(FirmsHotspot, records)
            if not is_low_confidence(h)
        ]
        hotspots.sort(key=lambda h: h.frp, reverse=True)
        return [self._normalize(h, now) for h in hotspots[: self.context.max_events]]

    def fallback(self, now: datetime) -> list[Event]:
        return [self._normalize(h, now) for h in fallback_hotspots(now)]

    def _normalize(self, hotspot: FirmsHotspot, now: datetime) -> Event:
        return normalize_firms_hotspot(
            hotspot=hotspot,
            now=now,
            gazetteer=self.context.gazetteer,
            source=self.name,
            jitter=self.context.jitter,
        )
