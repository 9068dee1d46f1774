"""Deterministic impact estimates.

Upstream feeds rarely report affected people or economic cost, so every
normalizer fills both fields from the tables below. Values are the midpoints
of the ranges the map client has always displayed for each hazard class.
A ``Jitter`` can spread them for demos; the default leaves them untouched.
"""

from __future__ import annotations

import random
from typing import Protocol


class Jitter(Protocol):
    def apply(self, value: int) -> int: ...


class NoJitter:
    def apply(self, value: int) -> int:
        return value


class SeededJitter:
    def __init__(self, seed: int, spread: float = 0.2) -> None:
        self._rng = random.Random(seed)
        self._spread = spread

    def apply(self, value: int) -> int:
        factor = 1.0 + self._rng.uniform(-self._spread, self._spread)
        return max(0, round(value * factor))


NO_JITTER = NoJitter()


def jitter_from_seed(seed: int | None) -> Jitter:
    return NO_JITTER if seed is None else SeededJitter(seed)


def estimate_earthquake_affected(magnitude: float) -> int:
    if magnitude >= 8.0:
        return 1_000_000
    if magnitude >= 7.0:
        return 350_000
    if magnitude >= 6.0:
        return 60_000
    return 6_000


def estimate_earthquake_economic(magnitude: float) -> int:
    return round(max(0.0, magnitude) * 50_000_000 + 50_000_000)


# (affected people, economic impact in USD) per severity
_IMPACT_TABLE: dict[str, dict[str, tuple[int, int]]] = {
    "fire": {
        "low": (500, 1_000_000),
        "medium": (2_500, 10_000_000),
        "high": (10_000, 50_000_000),
        "critical": (50_000, 250_000_000),
    },
    "weather": {
        "low": (5_000, 2_500_000),
        "medium": (25_000, 12_500_000),
        "high": (50_000, 25_000_000),
        "critical": (100_000, 50_000_000),
    },
    "volcano": {
        "low": (1_000, 5_000_000),
        "medium": (5_000, 50_000_000),
        "high": (25_000, 200_000_000),
        "critical": (100_000, 1_000_000_000),
    },
    "tsunami": {
        "low": (10_000, 10_000_000),
        "medium": (50_000, 100_000_000),
        "high": (250_000, 1_000_000_000),
        "critical": (1_000_000, 10_000_000_000),
    },
    "news": {
        "low": (1_000, 1_000_000),
        "medium": (10_000, 10_000_000),
        "high": (25_000, 50_000_000),
        "critical": (100_000, 500_000_000),
    },
}

_AQI_POPULATION_SHARE = {"medium": 0.05, "high": 0.15, "critical": 0.30}
AQI_COST_PER_PERSON_USD = 25


def estimate_impact(
    kind: str, severity: str, jitter: Jitter = NO_JITTER
) -> tuple[int, int]:
    affected, economic = _IMPACT_TABLE.get(kind, _IMPACT_TABLE["weather"])[severity]
    return jitter.apply(affected), jitter.apply(economic)


def estimate_air_quality_impact(
    population: int, severity: str, jitter: Jitter = NO_JITTER
) -> tuple[int, int]:
    affected = round(population * _AQI_POPULATION_SHARE.get(severity, 0.0))
    affected = jitter.apply(affected)
    return affected, affected * AQI_COST_PER_PERSON_USD
