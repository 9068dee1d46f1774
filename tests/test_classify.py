from datetime import UTC, datetime, timedelta

import pytest

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
)


NOW = datetime(2025, 10, 19, 12, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    ("magnitude", "expected"),
    [
        (7.0, "critical"),
        (8.3, "critical"),
        (6.99, "high"),
        (6.0, "high"),
        (5.99, "medium"),
        (4.0, "medium"),
        (3.99, "low"),
        (0.0, "low"),
    ],
)
def test_seismic_severity_thresholds(magnitude: float, expected: str) -> None:
    assert classify_seismic_severity(magnitude) == expected


@pytest.mark.parametrize(
    ("aqi", "expected"),
    [(500, "critical"), (301, "critical"), (300, "high"), (201, "high"), (200, "medium"), (151, "medium")],
)
def test_aqi_severity_thresholds(aqi: int, expected: str) -> None:
    assert classify_aqi_severity(aqi) == expected


def test_aqi_below_unhealthy_is_excluded() -> None:
    assert classify_aqi_severity(150) is None
    assert classify_aqi_severity(0) is None


def test_weather_alert_severity_mapping() -> None:
    assert classify_weather_alert_severity("Extreme") == "critical"
    assert classify_weather_alert_severity("severe") == "high"
    assert classify_weather_alert_severity("Moderate") == "medium"
    assert classify_weather_alert_severity("Minor") == "low"
    assert classify_weather_alert_severity(None) == "low"


def test_weather_alert_type_mapping() -> None:
    assert classify_weather_alert_type("Hurricane Warning") == "hurricane"
    assert classify_weather_alert_type("Tropical Storm Watch") == "hurricane"
    assert classify_weather_alert_type("Tornado Warning") == "tornado"
    assert classify_weather_alert_type("Flash Flood Warning") == "flood"
    assert classify_weather_alert_type("Red Flag Warning") == "weather"
    assert classify_weather_alert_type("Fire Weather Watch") == "fire"
    assert classify_weather_alert_type("Tsunami Advisory") == "tsunami"
    assert classify_weather_alert_type("Debris Flow Warning") == "landslide"
    assert classify_weather_alert_type("Winter Storm Warning") == "weather"


def test_weather_alert_status_uses_expiry() -> None:
    assert classify_weather_alert_status(NOW + timedelta(minutes=1), NOW) == "active"
    assert classify_weather_alert_status(NOW - timedelta(minutes=1), NOW) == "resolved"
    assert classify_weather_alert_status(None, NOW) == "active"


def test_seismic_status_by_age() -> None:
    assert classify_seismic_status(NOW - timedelta(hours=23, minutes=59), NOW) == "active"
    assert classify_seismic_status(NOW - timedelta(hours=24), NOW) == "contained"
    assert classify_seismic_status(NOW - timedelta(hours=71), NOW) == "contained"
    assert classify_seismic_status(NOW - timedelta(hours=72), NOW) == "resolved"


def test_fire_severity_by_radiative_power() -> None:
    assert classify_fire_severity(100.0) == "critical"
    assert classify_fire_severity(99.9) == "high"
    assert classify_fire_severity(50.0) == "high"
    assert classify_fire_severity(10.0) == "medium"
    assert classify_fire_severity(9.9) == "low"


def test_volcano_severity_takes_the_worse_signal() -> None:
    assert classify_volcano_severity("warning", "red") == "critical"
    assert classify_volcano_severity("advisory", "red") == "critical"
    assert classify_volcano_severity("WATCH", "yellow") == "high"
    assert classify_volcano_severity("normal", "green") == "low"
    assert classify_volcano_severity(None, None) == "medium"


def test_volcano_status() -> None:
    assert classify_volcano_status("warning") == "active"
    assert classify_volcano_status("Watch") == "active"
    assert classify_volcano_status("advisory") == "contained"
    assert classify_volcano_status("normal") == "resolved"


def test_tsunami_severity_prefers_pager_alert() -> None:
    assert classify_tsunami_severity(6.5, "red") == "critical"
    assert classify_tsunami_severity(8.5, "green") == "low"
    assert classify_tsunami_severity(8.1, None) == "critical"
    assert classify_tsunami_severity(7.2, None) == "high"
    assert classify_tsunami_severity(6.9, None) == "medium"
    assert classify_tsunami_severity(None, None) == "medium"


def test_temperature_severity() -> None:
    assert classify_temperature_severity(111.0) == "critical"
    assert classify_temperature_severity(-21.0) == "critical"
    assert classify_temperature_severity(105.0) == "high"
    assert classify_temperature_severity(-5.0) == "high"
    assert classify_temperature_severity(97.0) == "medium"
    assert classify_temperature_severity(15.0) == "medium"
    assert classify_temperature_severity(72.0) == "low"


def test_max_severity_is_ordinal() -> None:
    assert max_severity("low", "critical", "medium") == "critical"
    assert max_severity("medium", "high") == "high"


def test_news_type_first_match_wins() -> None:
    assert classify_news_type("Earthquake triggers tsunami warning") == "earthquake"
    assert classify_news_type("Volcanic eruption grounds flights") == "volcano"
    assert classify_news_type("Smog chokes the capital") == "air_quality"
    assert classify_news_type("Quarterly earnings beat expectations") is None


def test_news_severity_tiers() -> None:
    assert classify_news_severity("Devastating floods") == "critical"
    assert classify_news_severity("Deadly storm") == "high"
    assert classify_news_severity("Major wildfire forces evacuations") == "medium"
    assert classify_news_severity("Small tremor felt") == "low"
