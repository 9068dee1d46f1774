from __future__ import annotations

import math
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import yaml

from normalize.models import UNKNOWN


DEFAULT_PLACES_PATH = Path(__file__).resolve().parent / "data" / "places.yaml"

# Where events with no recognizable place are pinned.
DEFAULT_POINT = (0.0, 0.0)

_NAME_CLEAN_RE = re.compile(r"[^\w\s]+", flags=re.UNICODE)
_WS_RE = re.compile(r"\s+")

_EARTH_RADIUS_KM = 6371.0
_CITY_LABEL_RADIUS_KM = 300.0
_COUNTRY_LABEL_RADIUS_KM = 1500.0


def normalize_place_name(name: str) -> str:
    cleaned = _NAME_CLEAN_RE.sub(" ", name.strip().casefold())
    return _WS_RE.sub(" ", cleaned).strip()


@dataclass(frozen=True)
class Place:
    name: str
    kind: str
    country: str
    region: str
    lat: float
    lng: float
    population: int = 0
    monitor: tuple[str, ...] = ()
    aliases: tuple[str, ...] = ()

    def match_names(self) -> tuple[str, ...]:
        return (normalize_place_name(self.name),) + tuple(
            normalize_place_name(a) for a in self.aliases
        )


def haversine_km(lat0: float, lng0: float, lat1: float, lng1: float) -> float:
    phi0 = math.radians(lat0)
    phi1 = math.radians(lat1)
    d_phi = phi1 - phi0
    d_lam = math.radians(lng1 - lng0)
    a = (
        math.sin(d_phi / 2.0) ** 2
        + math.cos(phi0) * math.cos(phi1) * math.sin(d_lam / 2.0) ** 2
    )
    return 2.0 * _EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))


class Gazetteer:
    def __init__(self, places: list[Place]) -> None:
        self.cities = [p for p in places if p.kind == "city"]
        self.countries = [p for p in places if p.kind == "country"]

    def monitored(self, source: str) -> list[Place]:
        return [p for p in self.cities if source in p.monitor]

    def match_text(self, text: str) -> Place | None:
        """Best-effort lookup of the first city, then country, named in text."""
        normalized = normalize_place_name(text)
        if not normalized:
            return None
        joined = f" {normalized} "
        for place in (*self.cities, *self.countries):
            for name in place.match_names():
                if f" {name} " in joined:
                    return place
        return None

    def nearest(
        self, lat: float, lng: float, *, kind: str, max_km: float
    ) -> Place | None:
        candidates = self.cities if kind == "city" else self.countries
        best: Place | None = None
        best_km = max_km
        for place in candidates:
            dist_km = haversine_km(lat, lng, place.lat, place.lng)
            if dist_km <= best_km:
                best = place
                best_km = dist_km
        return best

    def label_for_point(self, lat: float, lng: float) -> tuple[str, str]:
        """Return (country, region) for a coordinate, defaulting to Unknown."""
        city = self.nearest(lat, lng, kind="city", max_km=_CITY_LABEL_RADIUS_KM)
        if city is not None:
            return (city.country, city.region)
        country = self.nearest(
            lat, lng, kind="country", max_km=_COUNTRY_LABEL_RADIUS_KM
        )
        if country is not None:
            return (country.name, UNKNOWN)
        return (UNKNOWN, UNKNOWN)


def load_places(path: Path) -> list[Place]:
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise ValueError(f"invalid places file: {path}")

    places: list[Place] = []
    for entry in raw.get("cities") or []:
        if not isinstance(entry, dict):
            raise ValueError(f"invalid city entry in: {path}")
        places.append(
            Place(
                name=str(entry["name"]),
                kind="city",
                country=str(entry.get("country") or UNKNOWN),
                region=str(entry.get("region") or entry["name"]),
                lat=float(entry["lat"]),
                lng=float(entry["lng"]),
                population=int(entry.get("population") or 0),
                monitor=tuple(str(s) for s in (entry.get("monitor") or [])),
                aliases=tuple(str(a) for a in (entry.get("aliases") or [])),
            )
        )
    for entry in raw.get("countries") or []:
        if not isinstance(entry, dict):
            raise ValueError(f"invalid country entry in: {path}")
        places.append(
            Place(
                name=str(entry["name"]),
                kind="country",
                country=str(entry["name"]),
                region=str(entry["name"]),
                lat=float(entry["lat"]),
                lng=float(entry["lng"]),
                aliases=tuple(str(a) for a in (entry.get("aliases") or [])),
            )
        )
    return places


@lru_cache(maxsize=4)
def load_gazetteer(path: Path = DEFAULT_PLACES_PATH) -> Gazetteer:
    return Gazetteer(load_places(path))
