"""Upstream payload schemas.

Every adapter validates what it received against one of these models before
handing records to the normalizer. Collections are validated first; records
are then validated one at a time so a single odd record does not sink a feed.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator


class PointGeometry(BaseModel):
    type: Literal["Point"]
    coordinates: list[float] = Field(min_length=2)


class UsgsProperties(BaseModel):
    mag: float | None = None
    place: str | None = None
    time: int
    updated: int | None = None
    url: str | None = None
    title: str | None = None
    tsunami: int = 0
    alert: str | None = None
    sig: int | None = None
    felt: int | None = None


class UsgsFeature(BaseModel):
    id: str
    properties: UsgsProperties
    geometry: PointGeometry


class NwsAlertProperties(BaseModel):
    id: str | None = None
    event: str
    headline: str | None = None
    description: str | None = None
    severity: str | None = None
    urgency: str | None = None
    certainty: str | None = None
    areaDesc: str | None = None
    sent: str | None = None
    effective: str | None = None
    onset: str | None = None
    expires: str | None = None

    @field_validator("sent", "effective", "onset", "expires")
    @classmethod
    def _iso_timestamp(cls, value: str | None) -> str | None:
        if value:
            datetime.fromisoformat(value)
        return value


class NwsAlertFeature(BaseModel):
    id: str | None = None
    properties: NwsAlertProperties
    geometry: dict[str, Any] | None = None


class VolcanoProperties(BaseModel):
    name: str = Field(validation_alias=AliasChoices("volcanoName", "volcano_name", "name"))
    alert_level: str | None = Field(
        default=None, validation_alias=AliasChoices("alertLevel", "alert_level")
    )
    color_code: str | None = Field(
        default=None, validation_alias=AliasChoices("colorCode", "color_code")
    )
    observatory: str | None = Field(
        default=None, validation_alias=AliasChoices("obsAbbr", "observatory")
    )
    sent_utc: str | None = Field(
        default=None, validation_alias=AliasChoices("sentUtc", "sent_utc", "updated")
    )
    vnum: str | None = None

    @field_validator("vnum", mode="before")
    @classmethod
    def _vnum_to_str(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value


class VolcanoFeature(BaseModel):
    id: str | int | None = None
    properties: VolcanoProperties
    geometry: PointGeometry


class FirmsHotspot(BaseModel):
    latitude: float
    longitude: float
    frp: float = 0.0
    brightness: float | None = Field(
        default=None, validation_alias=AliasChoices("bright_ti4", "brightness")
    )
    acq_date: str
    acq_time: str
    confidence: str = ""
    satellite: str | None = None
    daynight: str | None = None


class WaqiTime(BaseModel):
    iso: str


class WaqiCity(BaseModel):
    name: str | None = None


class WaqiData(BaseModel):
    aqi: int | str
    iaqi: dict[str, dict[str, float]] = Field(default_factory=dict)
    time: WaqiTime
    city: WaqiCity | None = None
    dominentpol: str | None = None


class WaqiResponse(BaseModel):
    status: Literal["ok"]
    data: WaqiData


class NewsSource(BaseModel):
    name: str = ""


class NewsArticle(BaseModel):
    source: NewsSource = Field(default_factory=NewsSource)
    title: str
    description: str | None = None
    url: str
    publishedAt: str
    content: str | None = None


class NewsResponse(BaseModel):
    status: Literal["ok"]
    articles: list[dict[str, Any]]


class OwmCondition(BaseModel):
    main: str
    description: str = ""


class OwmMain(BaseModel):
    temp: float


class OwmWind(BaseModel):
    speed: float = 0.0


class OwmObservation(BaseModel):
    weather: list[OwmCondition] = Field(min_length=1)
    main: OwmMain
    wind: OwmWind = Field(default_factory=OwmWind)
    dt: int
    name: str | None = None
