from __future__ import annotations

from app.settings import Settings
from geo.gazetteer import Gazetteer
from ingest.adapters.air_quality import AirQualityAdapter
from ingest.adapters.base import AdapterContext, SourceAdapter
from ingest.adapters.earthquakes import EarthquakeAdapter
from ingest.adapters.fires import FireAdapter
from ingest.adapters.news import NewsAdapter
from ingest.adapters.tsunamis import TsunamiAdapter
from ingest.adapters.volcanoes import VolcanoAdapter
from ingest.adapters.weather_alerts import WeatherAlertAdapter
from ingest.adapters.weather_observations import WeatherObservationAdapter
from normalize.impact import NO_JITTER, Jitter


def build_adapters(
    settings: Settings, gazetteer: Gazetteer, jitter: Jitter = NO_JITTER
) -> list[SourceAdapter]:
    context = AdapterContext(
        user_agent=settings.user_agent,
        timeout_seconds=settings.source_timeout_seconds,
        gazetteer=gazetteer,
        jitter=jitter,
        max_events=settings.max_events_per_source,
    )
    return [
        EarthquakeAdapter(context, url=settings.usgs_feed_url),
        FireAdapter(context, api_key=settings.firms_api_key),
        WeatherAlertAdapter(context, url=settings.nws_alerts_url),
        VolcanoAdapter(context, url=settings.volcano_feed_url),
        TsunamiAdapter(context, url=settings.tsunami_feed_url),
        AirQualityAdapter(context, token=settings.waqi_api_token),
        NewsAdapter(context, api_key=settings.news_api_key),
        WeatherObservationAdapter(context, api_key=settings.openweather_api_key),
    ]
