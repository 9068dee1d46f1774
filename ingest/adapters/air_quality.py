from __future__ import annotations

from datetime import datetime, timedelta

import httpx

from geo.gazetteer import Place
from ingest.adapters.base import AdapterContext, SourceAdapter
from ingest.errors import MissingCredentials, SourceUnavailable
from ingest.fetch import fetch_json
from ingest.schemas import WaqiData, WaqiResponse
from normalize.models import Event
from normalize.normalize import normalize_air_quality, to_iso


WAQI_FEED_URL = "https://api.waqi.info/feed/geo:{lat};{lng}/"

# (city, country, region, lat, lng, population, aqi, dominant pollutant)
_FALLBACK_READINGS: list[tuple[str, str, str, float, float, int, int, str]] = [
    ("Beijing", "China", "Beijing", 39.9042, 116.4074, 21_800_000, 180, "pm25"),
    ("Delhi", "India", "Delhi", 28.7041, 77.1025, 32_900_000, 240, "pm25"),
    ("Lahore", "Pakistan", "Punjab", 31.5204, 74.3587, 13_500_000, 310, "pm25"),
    ("Dhaka", "Bangladesh", "Dhaka", 23.8103, 90.4125, 23_200_000, 165, "pm10"),
]


def fallback_readings(now: datetime) -> list[tuple[Place, WaqiData]]:
    measured = to_iso(now - timedelta(minutes=30))
    readings: list[tuple[Place, WaqiData]] = []
    for name, country, region, lat, lng, population, aqi, pollutant in _FALLBACK_READINGS:
        city = Place(
            name=name,
            kind="city",
            country=country,
            region=region,
            lat=lat,
            lng=lng,
            population=population,
        )
        data = WaqiData.model_validate(
            {
                "aqi": aqi,
                "iaqi": {pollutant: {"v": float(aqi)}},
                "time": {"iso": measured},
                "city": {"name": name},
                "dominentpol": pollutant,
            }
        )
        readings.append((city, data))
    return readings


class AirQualityAdapter(SourceAdapter):
    """Polls WAQI for each monitored city; only unhealthy readings become events."""

    name = "air_quality"
    label = "Air Quality (WAQI)"

    def __init__(self, context: AdapterContext, *, token: str | None) -> None:
        super().__init__(context)
        self.token = (token or "").strip()

    async def fetch(self, client: httpx.AsyncClient, now: datetime) -> list[Event]:
        if not self.token:
            raise MissingCredentials(self.name, "WAQI_API_TOKEN")

        async def fetch_city(city: Place) -> Event | None:
            doc = await fetch_json(
                client,
                source=self.name,
                url=WAQI_FEED_URL.format(lat=city.lat, lng=city.lng),
                user_agent=self.context.user_agent,
                timeout_seconds=self.context.timeout_seconds,
                params={"token": self.token},
            )
            if isinstance(doc, dict) and doc.get("status") == "error":
                # WAQI reports bad tokens and unknown stations in the body.
                raise SourceUnavailable(self.name, "upstream_error", str(doc.get("data")))
            response = self.validate(WaqiResponse, doc)
            return self._normalize(city, response.data, now)

        cities = self.context.gazetteer.monitored(self.name)
        events = await self.fetch_per_city(cities, fetch_city)
        return events[: self.context.max_events]

    def fallback(self, now: datetime) -> list[Event]:
        events = [self._normalize(city, data, now) for city, data in fallback_readings(now)]
        return [e for e in events if e is not None]

    def _normalize(self, city: Place, data: WaqiData, now: datetime) -> Event | None:
        return normalize_air_quality(
            city=city, data=data, now=now, source=self.name, jitter=self.context.jitter
        )
