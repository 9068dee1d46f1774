import json
from pathlib import Path

import pytest

from ingest.parsers.csv import parse_csv_records
from ingest.parsers.geojson import parse_feature_collection


FIXTURES = Path(__file__).resolve().parent / "fixtures"


def test_parse_usgs_geojson_fixture() -> None:
    doc = json.loads((FIXTURES / "usgs.geojson").read_bytes())
    features = parse_feature_collection(doc)
    assert len(features) == 4
    assert features[0]["type"] == "Feature"


def test_parse_nws_geojson_fixture() -> None:
    doc = json.loads((FIXTURES / "nws_alerts.geojson").read_bytes())
    features = parse_feature_collection(doc)
    assert len(features) == 2
    assert features[0]["properties"]["event"] == "Tornado Warning"


def test_parse_feature_collection_rejects_other_shapes() -> None:
    with pytest.raises(ValueError):
        parse_feature_collection([])
    with pytest.raises(ValueError):
        parse_feature_collection({"type": "FeatureCollection", "features": None})


def test_parse_firms_csv_fixture() -> None:
    rows = parse_csv_records((FIXTURES / "firms.csv").read_bytes())
    assert len(rows) == 3
    assert rows[0]["frp"] == "142.6"
    assert rows[2]["confidence"] == "l"


def test_parse_csv_rejects_empty_payload() -> None:
    with pytest.raises(ValueError):
        parse_csv_records(b"")
