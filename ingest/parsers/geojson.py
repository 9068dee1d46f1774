from __future__ import annotations


def parse_feature_collection(doc: object) -> list[dict]:
    if not isinstance(doc, dict) or doc.get("type") != "FeatureCollection":
        raise ValueError("not a GeoJSON FeatureCollection")
    features = doc.get("features")
    if not isinstance(features, list):
        raise ValueError("FeatureCollection without a features list")
    return [f for f in features if isinstance(f, dict)]
