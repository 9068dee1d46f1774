import asyncio
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from geo.gazetteer import Gazetteer, Place
from ingest.adapters.air_quality import AirQualityAdapter
from ingest.adapters.base import AdapterContext
from ingest.adapters.earthquakes import EarthquakeAdapter
from ingest.adapters.fires import FireAdapter
from ingest.adapters.news import NewsAdapter
from ingest.adapters.tsunamis import TsunamiAdapter
from ingest.adapters.volcanoes import VolcanoAdapter
from ingest.adapters.weather_alerts import WeatherAlertAdapter
from ingest.adapters.weather_observations import WeatherObservationAdapter
from ingest.errors import MalformedPayload, MissingCredentials, SourceUnavailable


FIXTURES = Path(__file__).resolve().parent / "fixtures"

USGS_URL = "https://earthquake.test/summary.geojson"
NWS_URL = "https://alerts.test/active"
VOLCANO_URL = "https://volcano.test/geojson"


def _fixture(name: str) -> bytes:
    return (FIXTURES / name).read_bytes()


def _serve(
    handler: Callable[[httpx.Request], httpx.Response],
    fetch,
):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await fetch(client)

    return asyncio.run(go())


def _static(body: bytes, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, content=body)

    return handler


def _city_gazetteer(*cities: tuple[str, float, float, str]) -> Gazetteer:
    return Gazetteer(
        [
            Place(
                name=name,
                kind="city",
                country="Testland",
                region=name,
                lat=lat,
                lng=lng,
                population=1_000_000,
                monitor=(source,),
            )
            for name, lat, lng, source in cities
        ]
    )


def test_earthquakes_from_fixture_skip_malformed_records(context, now) -> None:
    adapter = EarthquakeAdapter(context, url=USGS_URL)
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=_fixture("usgs.geojson"))

    events = _serve(handler, lambda client: adapter.fetch(client, now))

    assert [e.id for e in events] == [
        "earthquakes:us7000abcd",
        "earthquakes:ci40000001",
        "earthquakes:us7000tsun",
    ]
    assert seen[0].headers["User-Agent"] == "hazard-monitor-tests/0.1"


def test_earthquakes_respect_max_events(gazetteer, now) -> None:
    context = AdapterContext(
        user_agent="t", timeout_seconds=1.0, gazetteer=gazetteer, max_events=1
    )
    adapter = EarthquakeAdapter(context, url=USGS_URL)
    events = _serve(_static(_fixture("usgs.geojson")), lambda c: adapter.fetch(c, now))
    assert len(events) == 1


def test_http_error_becomes_source_unavailable(context, now) -> None:
    adapter = EarthquakeAdapter(context, url=USGS_URL)
    with pytest.raises(SourceUnavailable) as excinfo:
        _serve(_static(b"", status_code=503), lambda c: adapter.fetch(c, now))
    assert excinfo.value.message == "http_503"


def test_timeout_becomes_source_unavailable(context, now) -> None:
    adapter = WeatherAlertAdapter(context, url=NWS_URL)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(SourceUnavailable) as excinfo:
        _serve(handler, lambda c: adapter.fetch(c, now))
    assert excinfo.value.code == "timeout"


def test_connect_error_is_named(context, now) -> None:
    adapter = VolcanoAdapter(context, url=VOLCANO_URL)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(SourceUnavailable) as excinfo:
        _serve(handler, lambda c: adapter.fetch(c, now))
    assert excinfo.value.code == "request_error:ConnectError"


def test_invalid_json_is_malformed(context, now) -> None:
    adapter = EarthquakeAdapter(context, url=USGS_URL)
    with pytest.raises(MalformedPayload) as excinfo:
        _serve(_static(b"<html>oops</html>"), lambda c: adapter.fetch(c, now))
    assert excinfo.value.code == "parse_error"


def test_wrong_shape_is_malformed(context, now) -> None:
    adapter = EarthquakeAdapter(context, url=USGS_URL)
    with pytest.raises(MalformedPayload) as excinfo:
        _serve(_static(b'{"type": "Feature"}'), lambda c: adapter.fetch(c, now))
    assert excinfo.value.code == "schema_error"


def test_collection_with_no_valid_records_is_malformed(context, now) -> None:
    adapter = EarthquakeAdapter(context, url=USGS_URL)
    body = b'{"type": "FeatureCollection", "features": [{"id": "x", "properties": {}}]}'
    with pytest.raises(MalformedPayload):
        _serve(_static(body), lambda c: adapter.fetch(c, now))


def test_empty_collection_is_not_an_error(context, now) -> None:
    adapter = EarthquakeAdapter(context, url=USGS_URL)
    body = b'{"type": "FeatureCollection", "features": []}'
    assert _serve(_static(body), lambda c: adapter.fetch(c, now)) == []


def test_weather_alerts_request_geojson(context, now) -> None:
    adapter = WeatherAlertAdapter(context, url=NWS_URL)
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=_fixture("nws_alerts.geojson"))

    events = _serve(handler, lambda c: adapter.fetch(c, now))

    assert seen[0].headers["Accept"] == "application/geo+json"
    assert [e.type for e in events] == ["tornado", "flood"]
    assert {e.source for e in events} == {"weather"}


def test_volcanoes_from_fixture(context, now) -> None:
    adapter = VolcanoAdapter(context, url=VOLCANO_URL)
    events = _serve(_static(_fixture("volcanoes.geojson")), lambda c: adapter.fetch(c, now))

    by_id = {e.id: e for e in events}
    assert by_id["volcanoes:332010"].severity == "high"
    assert by_id["volcanoes:311360"].severity == "medium"
    assert by_id["volcanoes:311360"].status == "contained"


def test_tsunamis_keep_only_flagged_quakes(context, now) -> None:
    adapter = TsunamiAdapter(context, url=USGS_URL)
    events = _serve(_static(_fixture("usgs.geojson")), lambda c: adapter.fetch(c, now))

    assert [e.id for e in events] == ["tsunamis:us7000tsun"]
    assert adapter.has_fallback is False
    assert adapter.fallback(now) == []


def test_fires_drop_low_confidence_and_sort_by_power(context, now) -> None:
    adapter = FireAdapter(context, api_key="KEY123")
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=_fixture("firms.csv"))

    events = _serve(handler, lambda c: adapter.fetch(c, now))

    assert "/KEY123/" in seen[0].url.path
    assert [e.severity for e in events] == ["critical", "medium"]
    assert events[0].id == "fires:2025-10-19T0942:34.3917:-118.5426"
    assert events[0].status == "active"


def test_fires_reject_plain_text_error(context, now) -> None:
    adapter = FireAdapter(context, api_key="bad")
    with pytest.raises(MalformedPayload):
        _serve(_static(b"Invalid MAP_KEY."), lambda c: adapter.fetch(c, now))


def test_missing_credentials_short_circuit_without_request(context, now) -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, content=b"{}")

    adapters = [
        FireAdapter(context, api_key=None),
        AirQualityAdapter(context, token=""),
        NewsAdapter(context, api_key="  "),
        WeatherObservationAdapter(context, api_key=None),
    ]
    for adapter in adapters:
        with pytest.raises(MissingCredentials) as excinfo:
            _serve(handler, lambda c, a=adapter: a.fetch(c, now))
        assert excinfo.value.code.startswith("missing_credentials:")
    assert calls == []


def test_air_quality_reports_only_unhealthy_cities(now) -> None:
    gazetteer = _city_gazetteer(
        ("Lahore", 31.5204, 74.3587, "air_quality"),
        ("Beijing", 39.9042, 116.4074, "air_quality"),
    )
    context = AdapterContext(user_agent="t", timeout_seconds=1.0, gazetteer=gazetteer)
    adapter = AirQualityAdapter(context, token="tok")

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["token"] == "tok"
        if "31.5204" in str(request.url):
            return httpx.Response(200, content=_fixture("waqi_lahore.json"))
        return httpx.Response(200, content=_fixture("waqi_clean.json"))

    events = _serve(handler, lambda c: adapter.fetch(c, now))

    assert [e.id for e in events] == ["air_quality:lahore"]
    assert events[0].severity == "critical"


def test_air_quality_tolerates_partial_city_failures(now) -> None:
    gazetteer = _city_gazetteer(
        ("Lahore", 31.5204, 74.3587, "air_quality"),
        ("Beijing", 39.9042, 116.4074, "air_quality"),
    )
    context = AdapterContext(user_agent="t", timeout_seconds=1.0, gazetteer=gazetteer)
    adapter = AirQualityAdapter(context, token="tok")

    def handler(request: httpx.Request) -> httpx.Response:
        if "31.5204" in str(request.url):
            return httpx.Response(200, content=_fixture("waqi_lahore.json"))
        return httpx.Response(500)

    events = _serve(handler, lambda c: adapter.fetch(c, now))
    assert [e.id for e in events] == ["air_quality:lahore"]


def test_air_quality_upstream_error_fails_when_every_city_fails(now) -> None:
    gazetteer = _city_gazetteer(("Lahore", 31.5204, 74.3587, "air_quality"))
    context = AdapterContext(user_agent="t", timeout_seconds=1.0, gazetteer=gazetteer)
    adapter = AirQualityAdapter(context, token="tok")

    with pytest.raises(SourceUnavailable) as excinfo:
        _serve(_static(_fixture("waqi_error.json")), lambda c: adapter.fetch(c, now))
    assert excinfo.value.code == "upstream_error"


def test_news_sends_key_header_and_drops_non_hazards(context, now) -> None:
    adapter = NewsAdapter(context, api_key="news-key")
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=_fixture("newsapi.json"))

    events = _serve(handler, lambda c: adapter.fetch(c, now))

    assert seen[0].headers["X-Api-Key"] == "news-key"
    assert "news-key" not in str(seen[0].url)
    assert [e.type for e in events] == ["earthquake", "fire"]
    assert events[1].location.country == "Australia"
    assert events[1].status == "resolved"


def test_weather_observations_keep_extremes_only(now) -> None:
    gazetteer = _city_gazetteer(
        ("Phoenix", 33.4484, -112.074, "weather_observations"),
        ("Chicago", 41.8781, -87.6298, "weather_observations"),
    )
    context = AdapterContext(user_agent="t", timeout_seconds=1.0, gazetteer=gazetteer)
    adapter = WeatherObservationAdapter(context, api_key="owm")

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["units"] == "imperial"
        if request.url.params["lat"] == "33.4484":
            return httpx.Response(200, content=_fixture("owm_phoenix.json"))
        return httpx.Response(200, content=_fixture("owm_mild.json"))

    events = _serve(handler, lambda c: adapter.fetch(c, now))

    assert [e.id for e in events] == ["weather_observations:phoenix:1760874600"]


@pytest.mark.parametrize(
    "make",
    [
        lambda ctx: EarthquakeAdapter(ctx, url=USGS_URL),
        lambda ctx: FireAdapter(ctx, api_key=None),
        lambda ctx: WeatherAlertAdapter(ctx, url=NWS_URL),
        lambda ctx: VolcanoAdapter(ctx, url=VOLCANO_URL),
        lambda ctx: AirQualityAdapter(ctx, token=None),
        lambda ctx: NewsAdapter(ctx, api_key=None),
        lambda ctx: WeatherObservationAdapter(ctx, api_key=None),
    ],
)
def test_fallbacks_are_non_empty_and_deterministic(make, context, now) -> None:
    adapter = make(context)
    first = adapter.fallback(now)
    second = adapter.fallback(now)

    assert first
    assert first == second
    assert len({e.id for e in first}) == len(first)
    assert {e.source for e in first} == {adapter.name}


def test_fallback_earthquake_matches_known_reading(context, now) -> None:
    events = EarthquakeAdapter(context, url=USGS_URL).fallback(now)
    honshu = next(e for e in events if e.id == "earthquakes:fallback-honshu")

    assert honshu.severity == "high"
    assert honshu.status == "active"
    assert (honshu.location.lat, honshu.location.lng) == (38.2975, 142.3731)


def test_fallback_air_quality_includes_hazardous_lahore(context, now) -> None:
    events = AirQualityAdapter(context, token=None).fallback(now)
    lahore = next(e for e in events if e.id == "air_quality:lahore")
    assert lahore.severity == "critical"
