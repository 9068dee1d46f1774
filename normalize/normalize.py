from __future__ import annotations

import hashlib
import re
from datetime import UTC, datetime

from cluster.dedupe import canonicalize_url
from geo.gazetteer import DEFAULT_POINT, Gazetteer, Place, normalize_place_name
from ingest.schemas import (
    FirmsHotspot,
    NewsArticle,
    NwsAlertFeature,
    OwmObservation,
    UsgsFeature,
    VolcanoFeature,
    WaqiData,
)
from normalize.classify import (
    classify_aqi_severity,
    classify_fire_severity,
    classify_news_severity,
    classify_news_type,
    classify_seismic_severity,
    classify_seismic_status,
    classify_temperature_severity,
    classify_tsunami_severity,
    classify_volcano_severity,
    classify_volcano_status,
    classify_weather_alert_severity,
    classify_weather_alert_status,
    classify_weather_alert_type,
    max_severity,
    status_from_age,
)
from normalize.impact import (
    NO_JITTER,
    Jitter,
    estimate_air_quality_impact,
    estimate_earthquake_affected,
    estimate_earthquake_economic,
    estimate_impact,
)
from normalize.models import UNKNOWN, Event, Location


# NWS alerts without geometry are pinned to the contiguous-US center.
US_CENTER = (39.8283, -98.5795)

_AREA_SPLIT_RE = re.compile(r"[;,]")


def to_iso(dt: datetime) -> str:
    return dt.astimezone(tz=UTC).isoformat().replace("+00:00", "Z")


def parse_iso(ts: str) -> datetime:
    if ts.endswith("Z"):
        dt = datetime.fromisoformat(ts.removesuffix("Z") + "+00:00")
    else:
        dt = datetime.fromisoformat(ts)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(tz=UTC)


def _datetime_from_epoch_ms(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000.0, tz=UTC)


def _slug(name: str) -> str:
    return normalize_place_name(name).replace(" ", "-")


def _sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _clamp_point(lat: float, lng: float) -> tuple[float, float]:
    return (max(-90.0, min(90.0, lat)), max(-180.0, min(180.0, lng)))


def polygon_centroid(geometry: dict | None) -> tuple[float, float] | None:
    """Average of the outer ring vertices; good enough for a map marker."""
    if not geometry:
        return None
    geom_type = geometry.get("type")
    coords = geometry.get("coordinates")
    if not coords:
        return None

    ring: list = []
    if geom_type == "Polygon":
        ring = coords[0]
    elif geom_type == "MultiPolygon":
        ring = coords[0][0] if coords[0] else []
    elif geom_type == "Point":
        return (float(coords[1]), float(coords[0]))
    if not ring:
        return None

    lat = sum(float(p[1]) for p in ring) / len(ring)
    lng = sum(float(p[0]) for p in ring) / len(ring)
    return (lat, lng)


def _split_usgs_place(place: str) -> tuple[str | None, str | None]:
    """'12 km SSW of Ridgecrest, CA' -> ('CA', 'Ridgecrest')."""
    if not place:
        return (None, None)
    head, _, tail = place.rpartition(", ")
    if not head:
        head, tail = tail, ""
    if " of " in head:
        head = head.split(" of ", 1)[1]
    return (tail.strip() or None, head.strip() or None)


def normalize_usgs_earthquake(
    *,
    feature: UsgsFeature,
    now: datetime,
    gazetteer: Gazetteer,
    source: str = "earthquakes",
    jitter: Jitter = NO_JITTER,
) -> Event:
    properties = feature.properties
    coords = feature.geometry.coordinates
    lat, lng = _clamp_point(float(coords[1]), float(coords[0]))
    depth = float(coords[2]) if len(coords) > 2 else None
    mag = float(properties.mag) if properties.mag is not None else 0.0
    occurred_at = _datetime_from_epoch_ms(properties.time)

    place = properties.place or ""
    place_country, place_region = _split_usgs_place(place)
    country, region = gazetteer.label_for_point(lat, lng)
    if country == UNKNOWN and place_country:
        country = place_country
    if place_region:
        region = place_region

    return Event(
        id=f"{source}:{feature.id}",
        type="earthquake",
        title=f"M{mag:.1f} Earthquake",
        description=place or "Earthquake detected",
        location=Location(lat=lat, lng=lng, country=country, region=region),
        severity=classify_seismic_severity(mag),
        date=to_iso(occurred_at),
        status=classify_seismic_status(occurred_at, now),
        source=source,
        affected_people=jitter.apply(estimate_earthquake_affected(mag)),
        economic_impact=jitter.apply(estimate_earthquake_economic(mag)),
        metadata={
            "magnitude": mag,
            "depth_km": depth,
            "place": properties.place,
            "url": properties.url,
            "felt": properties.felt,
            "pager_alert": properties.alert,
            "tsunami": bool(properties.tsunami),
        },
    )


def normalize_nws_alert(
    *,
    feature: NwsAlertFeature,
    now: datetime,
    source: str = "weather",
    jitter: Jitter = NO_JITTER,
) -> Event:
    properties = feature.properties
    external_id = feature.id or properties.id or _sha256_hex(
        f"{properties.event}|{properties.headline}|{properties.sent}"
    )[:16]

    centroid = polygon_centroid(feature.geometry)
    lat, lng = _clamp_point(*(centroid or US_CENTER))

    area = properties.areaDesc or ""
    region = _AREA_SPLIT_RE.split(area)[0].strip() if area else UNKNOWN

    occurred = properties.effective or properties.onset or properties.sent
    occurred_at = parse_iso(occurred) if occurred else now
    expires = parse_iso(properties.expires) if properties.expires else None

    severity = classify_weather_alert_severity(properties.severity)
    affected, economic = estimate_impact("weather", severity, jitter)

    return Event(
        id=f"{source}:{external_id}",
        type=classify_weather_alert_type(properties.event),
        title=properties.event,
        description=properties.headline or properties.description or properties.event,
        location=Location(lat=lat, lng=lng, country="United States", region=region),
        severity=severity,
        date=to_iso(occurred_at),
        status=classify_weather_alert_status(expires, now),
        source=source,
        affected_people=affected,
        economic_impact=economic,
        metadata={
            "event": properties.event,
            "upstream_severity": properties.severity,
            "urgency": properties.urgency,
            "certainty": properties.certainty,
            "area": properties.areaDesc,
            "expires": properties.expires,
            "has_geometry": centroid is not None,
        },
    )


def _firms_acquired_at(hotspot: FirmsHotspot, fallback: datetime) -> datetime:
    acq_time = hotspot.acq_time.zfill(4)
    try:
        hh = int(acq_time[:2])
        mm = int(acq_time[2:4])
        return datetime.fromisoformat(hotspot.acq_date).replace(
            tzinfo=UTC, hour=hh, minute=mm, second=0, microsecond=0
        )
    except ValueError:
        return fallback


def normalize_firms_hotspot(
    *,
    hotspot: FirmsHotspot,
    now: datetime,
    gazetteer: Gazetteer,
    source: str = "fires",
    jitter: Jitter = NO_JITTER,
) -> Event:
    lat, lng = _clamp_point(hotspot.latitude, hotspot.longitude)
    acquired_at = _firms_acquired_at(hotspot, now)
    severity = classify_fire_severity(hotspot.frp)
    affected, economic = estimate_impact("fire", severity, jitter)
    country, region = gazetteer.label_for_point(lat, lng)

    return Event(
        id=f"{source}:{hotspot.acq_date}T{hotspot.acq_time}:{lat:.4f}:{lng:.4f}",
        type="fire",
        title=f"Active Fire ({hotspot.frp:.0f} MW)",
        description=(
            f"Satellite fire detection, radiative power {hotspot.frp:.1f} MW"
            + (f", brightness {hotspot.brightness:.0f} K" if hotspot.brightness else "")
        ),
        location=Location(lat=lat, lng=lng, country=country, region=region),
        severity=severity,
        date=to_iso(acquired_at),
        status=status_from_age(acquired_at, now),
        source=source,
        affected_people=affected,
        economic_impact=economic,
        metadata={
            "frp": hotspot.frp,
            "brightness": hotspot.brightness,
            "confidence": hotspot.confidence,
            "satellite": hotspot.satellite,
            "daynight": hotspot.daynight,
        },
    )


def _volcano_sent_at(value: str | None, fallback: datetime) -> datetime:
    if not value:
        return fallback
    try:
        return datetime.strptime(value, "%Y-%m-%d %H:%M:%S").replace(tzinfo=UTC)
    except ValueError:
        pass
    try:
        return parse_iso(value)
    except ValueError:
        return fallback


def normalize_volcano(
    *,
    feature: VolcanoFeature,
    now: datetime,
    gazetteer: Gazetteer,
    source: str = "volcanoes",
    jitter: Jitter = NO_JITTER,
) -> Event:
    properties = feature.properties
    coords = feature.geometry.coordinates
    lat, lng = _clamp_point(float(coords[1]), float(coords[0]))
    alert_level = properties.alert_level or "unassigned"
    color_code = properties.color_code or "unassigned"

    severity = classify_volcano_severity(properties.alert_level, properties.color_code)
    affected, economic = estimate_impact("volcano", severity, jitter)
    country, _ = gazetteer.label_for_point(lat, lng)

    return Event(
        id=f"{source}:{properties.vnum or _slug(properties.name)}",
        type="volcano",
        title=f"{properties.name} - {alert_level.title()} / {color_code.title()}",
        description=(
            f"Volcanic activity at {properties.name}: alert level {alert_level}, "
            f"aviation color code {color_code}"
        ),
        location=Location(lat=lat, lng=lng, country=country, region=properties.name),
        severity=severity,
        date=to_iso(_volcano_sent_at(properties.sent_utc, now)),
        status=classify_volcano_status(properties.alert_level),
        source=source,
        affected_people=affected,
        economic_impact=economic,
        metadata={
            "vnum": properties.vnum,
            "alert_level": properties.alert_level,
            "aviation_color_code": properties.color_code,
            "observatory": properties.observatory,
        },
    )


def normalize_tsunami(
    *,
    feature: UsgsFeature,
    now: datetime,
    gazetteer: Gazetteer,
    source: str = "tsunamis",
    jitter: Jitter = NO_JITTER,
) -> Event:
    properties = feature.properties
    coords = feature.geometry.coordinates
    lat, lng = _clamp_point(float(coords[1]), float(coords[0]))
    occurred_at = _datetime_from_epoch_ms(properties.time)
    place = properties.place or "Unknown location"

    severity = classify_tsunami_severity(properties.mag, properties.alert)
    affected, economic = estimate_impact("tsunami", severity, jitter)
    country, region = gazetteer.label_for_point(lat, lng)
    place_country, place_region = _split_usgs_place(place)
    if country == UNKNOWN and place_country:
        country = place_country

    mag_label = f"M{properties.mag:.1f} " if properties.mag is not None else ""
    return Event(
        id=f"{source}:{feature.id}",
        type="tsunami",
        title=f"Tsunami Threat - {mag_label}{place}".strip(),
        description=f"Tsunami potential flagged for {mag_label}earthquake {place}",
        location=Location(
            lat=lat, lng=lng, country=country, region=place_region or region
        ),
        severity=severity,
        date=to_iso(occurred_at),
        status=status_from_age(
            occurred_at, now, active_hours=6.0, contained_hours=24.0
        ),
        source=source,
        affected_people=affected,
        economic_impact=economic,
        metadata={
            "magnitude": properties.mag,
            "pager_alert": properties.alert,
            "url": properties.url,
        },
    )


def _aqi_label(aqi: int) -> str:
    if aqi >= 301:
        return "Hazardous"
    if aqi >= 201:
        return "Very Unhealthy"
    return "Unhealthy"


def normalize_air_quality(
    *,
    city: Place,
    data: WaqiData,
    now: datetime,
    source: str = "air_quality",
    jitter: Jitter = NO_JITTER,
) -> Event | None:
    """Returns None for readings below the unhealthy threshold or without an index."""
    if isinstance(data.aqi, str):
        if not data.aqi.strip().isdigit():
            return None
        aqi = int(data.aqi.strip())
    else:
        aqi = data.aqi

    severity = classify_aqi_severity(aqi)
    if severity is None:
        return None

    try:
        measured_at = parse_iso(data.time.iso)
    except ValueError:
        measured_at = now
    affected, economic = estimate_air_quality_impact(city.population, severity, jitter)
    label = _aqi_label(aqi)

    return Event(
        id=f"{source}:{_slug(city.name)}",
        type="air_quality",
        title=f"{label} Air Quality - {city.name}",
        description=f"Air quality index: {aqi} - {label}",
        location=Location(
            lat=city.lat, lng=city.lng, country=city.country, region=city.region
        ),
        severity=severity,
        date=to_iso(measured_at),
        status="active",
        source=source,
        affected_people=affected,
        economic_impact=economic,
        metadata={
            "aqi": aqi,
            "components": {k: v.get("v") for k, v in data.iaqi.items()},
            "dominant_pollutant": data.dominentpol,
            "station": data.city.name if data.city else None,
        },
    )


def normalize_news_article(
    *,
    article: NewsArticle,
    now: datetime,
    gazetteer: Gazetteer,
    source: str = "news",
    jitter: Jitter = NO_JITTER,
) -> Event | None:
    """Returns None for articles that do not describe a hazard."""
    text = f"{article.title} {article.description or ''}"
    event_type = classify_news_type(text)
    if event_type is None:
        return None

    place = gazetteer.match_text(text) or gazetteer.match_text(article.source.name)
    if place is not None:
        location = Location(
            lat=place.lat, lng=place.lng, country=place.country, region=place.region
        )
    else:
        location = Location(lat=DEFAULT_POINT[0], lng=DEFAULT_POINT[1])

    try:
        published_at = parse_iso(article.publishedAt)
    except ValueError:
        published_at = now
    severity = classify_news_severity(text)
    affected, economic = estimate_impact("news", severity, jitter)
    url = canonicalize_url(article.url)

    return Event(
        id=f"{source}:{_sha256_hex(url)[:16]}",
        type=event_type,
        title=article.title.strip(),
        description=(article.description or "No description available").strip(),
        location=location,
        severity=severity,
        date=to_iso(published_at),
        status=status_from_age(published_at, now),
        source=source,
        affected_people=affected,
        economic_impact=economic,
        metadata={
            "url": url,
            "publisher": article.source.name or None,
            "location_matched": place is not None,
        },
    )


_SEVERE_CONDITION_FLOOR = {
    "tornado": "high",
    "thunderstorm": "medium",
    "squall": "medium",
}


def normalize_weather_observation(
    *,
    city: Place,
    observation: OwmObservation,
    now: datetime,
    source: str = "weather_observations",
    jitter: Jitter = NO_JITTER,
) -> Event | None:
    """Only extreme readings (temperatures in F) become events."""
    condition = observation.weather[0]
    condition_key = condition.main.strip().casefold()
    temp = observation.main.temp
    floor = _SEVERE_CONDITION_FLOOR.get(condition_key)
    if floor is None and 0.0 <= temp <= 100.0:
        return None

    severity = classify_temperature_severity(temp)
    if floor is not None:
        severity = max_severity(severity, floor)
    affected, economic = estimate_impact("weather", severity, jitter)
    observed_at = datetime.fromtimestamp(observation.dt, tz=UTC)

    return Event(
        id=f"{source}:{_slug(city.name)}:{observation.dt}",
        type="tornado" if condition_key == "tornado" else "weather",
        title=f"Extreme Weather - {city.name}",
        description=(
            f"{condition.description or condition.main} with temperature "
            f"{round(temp)}°F, wind {observation.wind.speed:.0f} mph"
        ),
        location=Location(
            lat=city.lat, lng=city.lng, country=city.country, region=city.region
        ),
        severity=severity,
        date=to_iso(observed_at),
        status="active",
        source=source,
        affected_people=affected,
        economic_impact=economic,
        metadata={
            "condition": condition.main,
            "temperature_f": temp,
            "wind_mph": observation.wind.speed,
        },
    )
