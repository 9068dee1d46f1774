from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from geo.gazetteer import DEFAULT_PLACES_PATH


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    user_agent: str = Field(
        default="hazard-monitor/0.1", validation_alias="USER_AGENT"
    )

    firms_api_key: str | None = Field(default=None, validation_alias="FIRMS_API_KEY")
    waqi_api_token: str | None = Field(
        default=None, validation_alias="WAQI_API_TOKEN"
    )
    openweather_api_key: str | None = Field(
        default=None, validation_alias="OPENWEATHER_API_KEY"
    )
    news_api_key: str | None = Field(default=None, validation_alias="NEWS_API_KEY")

    refresh_interval_seconds: float = Field(
        default=300.0, gt=0, validation_alias="REFRESH_INTERVAL_SECONDS"
    )
    source_timeout_seconds: float = Field(
        default=15.0, gt=0, validation_alias="SOURCE_TIMEOUT_SECONDS"
    )
    synthetic_only: bool = Field(default=False, validation_alias="SYNTHETIC_ONLY")
    error_log_limit: int = Field(default=50, gt=0, validation_alias="ERROR_LOG_LIMIT")
    max_events_per_source: int = Field(
        default=200, gt=0, validation_alias="MAX_EVENTS_PER_SOURCE"
    )
    demo_jitter_seed: int | None = Field(
        default=None, validation_alias="DEMO_JITTER_SEED"
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    places_path: Path = Field(
        default=DEFAULT_PLACES_PATH, validation_alias="PLACES_PATH"
    )

    usgs_feed_url: str = Field(
        default="https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/2.5_day.geojson",
        validation_alias="USGS_FEED_URL",
    )
    nws_alerts_url: str = Field(
        default="https://api.weather.gov/alerts/active",
        validation_alias="NWS_ALERTS_URL",
    )
    volcano_feed_url: str = Field(
        default="https://volcanoes.usgs.gov/vsc/api/volcanoApi/geojson",
        validation_alias="VOLCANO_FEED_URL",
    )
    tsunami_feed_url: str = Field(
        default="https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/4.5_week.geojson",
        validation_alias="TSUNAMI_FEED_URL",
    )
