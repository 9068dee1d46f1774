from __future__ import annotations

from datetime import datetime, timedelta

import httpx

from geo.gazetteer import Place
from ingest.adapters.base import AdapterContext, SourceAdapter
from ingest.errors import MissingCredentials
from ingest.fetch import fetch_json
from ingest.schemas import OwmObservation
from normalize.models import Event
from normalize.normalize import normalize_weather_observation


OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"

# (city, country, region, lat, lng, condition, description, temp F, wind mph)
_FALLBACK_OBSERVATIONS: list[tuple[str, str, str, float, float, str, str, float, float]] = [
    ("Miami", "United States", "Florida", 25.7617, -80.1918,
     "Thunderstorm", "heavy thunderstorm", 88.0, 41.0),
    ("Phoenix", "United States", "Arizona", 33.4484, -112.074,
     "Clear", "clear sky", 112.0, 6.0),
    ("Chicago", "United States", "Illinois", 41.8781, -87.6298,
     "Clouds", "overcast clouds", 71.0, 12.0),
]


def fallback_observations(now: datetime) -> list[tuple[Place, OwmObservation]]:
    observed = int((now - timedelta(minutes=10)).timestamp())
    readings: list[tuple[Place, OwmObservation]] = []
    for name, country, region, lat, lng, main, description, temp, wind in _FALLBACK_OBSERVATIONS:
        city = Place(name=name, kind="city", country=country, region=region, lat=lat, lng=lng)
        observation = OwmObservation.model_validate(
            {
                "weather": [{"main": main, "description": description}],
                "main": {"temp": temp},
                "wind": {"speed": wind},
                "dt": observed,
                "name": name,
            }
        )
        readings.append((city, observation))
    return readings


class WeatherObservationAdapter(SourceAdapter):
    """Current conditions for monitored cities; ordinary weather is dropped."""

    name = "weather_observations"
    label = "OpenWeatherMap Observations"

    def __init__(self, context: AdapterContext, *, api_key: str | None) -> None:
        super().__init__(context)
        self.api_key = (api_key or "").strip()

    async def fetch(self, client: httpx.AsyncClient, now: datetime) -> list[Event]:
        if not self.api_key:
            raise MissingCredentials(self.name, "OPENWEATHER_API_KEY")

        async def fetch_city(city: Place) -> Event | None:
            doc = await fetch_json(
                client,
                source=self.name,
                url=OPENWEATHER_URL,
                user_agent=self.context.user_agent,
                timeout_seconds=self.context.timeout_seconds,
                params={
                    "lat": str(city.lat),
                    "lon": str(city.lng),
                    "units": "imperial",
                    "appid": self.api_key,
                },
            )
            observation = self.validate(OwmObservation, doc)
            return self._normalize(city, observation, now)

        cities = self.context.gazetteer.monitored(self.name)
        events = await self.fetch_per_city(cities, fetch_city)
        return events[: self.context.max_events]

    def fallback(self, now: datetime) -> list[Event]:
        events = [
            self._normalize(city, observation, now)
            for city, observation in fallback_observations(now)
        ]
        return [e for e in events if e is not None]

    def _normalize(
        self, city: Place, observation: OwmObservation, now: datetime
    ) -> Event | None:
        return normalize_weather_observation(
            city=city,
            observation=observation,
            now=now,
            source=self.name,
            jitter=self.context.jitter,
        )
