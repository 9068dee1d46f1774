from __future__ import annotations

from datetime import datetime

from normalize.models import SEVERITIES, SEVERITY_RANK


def classify_seismic_severity(magnitude: float) -> str:
    if magnitude >= 7.0:
        return "critical"
    if magnitude >= 6.0:
        return "high"
    if magnitude >= 4.0:
        return "medium"
    return "low"


def classify_aqi_severity(aqi: int) -> str | None:
    """Only unhealthy air (AQI 151 and up) is reported; below that returns None."""
    if aqi >= 301:
        return "critical"
    if aqi >= 201:
        return "high"
    if aqi >= 151:
        return "medium"
    return None


def classify_weather_alert_severity(severity: str | None) -> str:
    value = (severity or "").strip().casefold()
    if value == "extreme":
        return "critical"
    if value == "severe":
        return "high"
    if value == "moderate":
        return "medium"
    return "low"


def classify_weather_alert_type(event: str | None) -> str:
    value = (event or "").casefold()
    if "hurricane" in value or "tropical" in value or "typhoon" in value:
        return "hurricane"
    if "tornado" in value:
        return "tornado"
    if "tsunami" in value:
        return "tsunami"
    if "flood" in value:
        return "flood"
    if "fire" in value:
        return "fire"
    if "drought" in value:
        return "drought"
    if "landslide" in value or "debris flow" in value:
        return "landslide"
    return "weather"


def classify_fire_severity(frp: float) -> str:
    if frp >= 100.0:
        return "critical"
    if frp >= 50.0:
        return "high"
    if frp >= 10.0:
        return "medium"
    return "low"


_VOLCANO_ALERT_RANK = {"normal": 0, "advisory": 1, "watch": 2, "warning": 3}
_VOLCANO_COLOR_RANK = {"green": 0, "yellow": 1, "orange": 2, "red": 3}


def classify_volcano_severity(alert_level: str | None, color_code: str | None) -> str:
    alert_rank = _VOLCANO_ALERT_RANK.get((alert_level or "").strip().casefold(), 1)
    color_rank = _VOLCANO_COLOR_RANK.get((color_code or "").strip().casefold(), 1)
    return SEVERITIES[max(alert_rank, color_rank)]


def classify_volcano_status(alert_level: str | None) -> str:
    level = (alert_level or "").strip().casefold()
    if level in ("warning", "watch"):
        return "active"
    if level == "normal":
        return "resolved"
    return "contained"


_PAGER_SEVERITY = {
    "red": "critical",
    "orange": "high",
    "yellow": "medium",
    "green": "low",
}


def classify_tsunami_severity(magnitude: float | None, pager_alert: str | None) -> str:
    pager = _PAGER_SEVERITY.get((pager_alert or "").strip().casefold())
    if pager is not None:
        return pager
    if magnitude is None:
        return "medium"
    if magnitude >= 8.0:
        return "critical"
    if magnitude >= 7.0:
        return "high"
    return "medium"


def classify_temperature_severity(temp_f: float) -> str:
    if temp_f > 110.0 or temp_f < -20.0:
        return "critical"
    if temp_f > 100.0 or temp_f < 0.0:
        return "high"
    if temp_f > 95.0 or temp_f < 20.0:
        return "medium"
    return "low"


def max_severity(*severities: str) -> str:
    return max(severities, key=lambda s: SEVERITY_RANK[s])


_NEWS_TYPE_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("earthquake", ("earthquake", "quake", "seismic", "tremor")),
    ("tsunami", ("tsunami",)),
    ("volcano", ("volcano", "volcanic", "eruption", "lava")),
    ("hurricane", ("hurricane", "typhoon", "cyclone", "tropical storm")),
    ("tornado", ("tornado", "twister")),
    ("fire", ("wildfire", "bushfire", "forest fire", "blaze")),
    ("flood", ("flood", "flooding", "flash flood")),
    ("landslide", ("landslide", "mudslide")),
    ("drought", ("drought",)),
    ("air_quality", ("air quality", "smog", "air pollution")),
    ("accident", ("explosion", "derail", "collapse", "plane crash")),
]

_NEWS_SEVERITY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("critical", ("catastrophic", "devastating")),
    ("high", ("deadly", "killed", "dead", "fatal", "emergency")),
    ("medium", ("major", "severe", "massive", "evacuat")),
]


def classify_news_type(text: str) -> str | None:
    lowered = text.casefold()
    for event_type, keywords in _NEWS_TYPE_KEYWORDS:
        if any(k in lowered for k in keywords):
            return event_type
    return None


def classify_news_severity(text: str) -> str:
    lowered = text.casefold()
    for severity, keywords in _NEWS_SEVERITY_KEYWORDS:
        if any(k in lowered for k in keywords):
            return severity
    return "low"


def status_from_age(
    occurred_at: datetime,
    now: datetime,
    *,
    active_hours: float = 24.0,
    contained_hours: float = 72.0,
) -> str:
    hours = (now - occurred_at).total_seconds() / 3600.0
    if hours < active_hours:
        return "active"
    if hours < contained_hours:
        return "contained"
    return "resolved"


def classify_seismic_status(occurred_at: datetime, now: datetime) -> str:
    return status_from_age(occurred_at, now)


def classify_weather_alert_status(expires: datetime | None, now: datetime) -> str:
    if expires is None:
        return "active"
    return "active" if expires > now else "resolved"
