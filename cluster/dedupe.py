from __future__ import annotations

import hashlib
import re
from collections.abc import Iterable
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from normalize.models import Event


_TITLE_WHITESPACE_RE = re.compile(r"\s+")
_TITLE_PUNCT_RE = re.compile(r"[^\w\s]+", flags=re.UNICODE)

# News titles closer than this (in simhash bits) are the same story.
NEAR_DUPLICATE_BITS = 3


def normalize_title(title: str) -> str:
    normalized = title.strip().casefold()
    normalized = _TITLE_PUNCT_RE.sub(" ", normalized)
    normalized = _TITLE_WHITESPACE_RE.sub(" ", normalized).strip()
    return normalized


_TRACKING_PARAM_NAMES = {
    "fbclid",
    "gclid",
    "mc_cid",
    "mc_eid",
    "mkt_tok",
}


def canonicalize_url(url: str) -> str:
    parts = urlsplit(url)
    kept_params: list[tuple[str, str]] = []
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        key_lower = key.casefold()
        if key_lower.startswith("utm_"):
            continue
        if key_lower in _TRACKING_PARAM_NAMES:
            continue
        kept_params.append((key, value))

    return urlunsplit(
        (
            parts.scheme,
            parts.netloc.casefold(),
            parts.path,
            urlencode(kept_params, doseq=True),
            "",
        )
    )


def simhash64(text: str) -> int:
    tokens = re.findall(r"[a-z0-9]+", text.casefold())
    if not tokens:
        return 0

    weights: dict[str, int] = {}
    for token in tokens:
        weights[token] = weights.get(token, 0) + 1

    vector = [0] * 64
    for token, weight in weights.items():
        digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
        token_hash = int.from_bytes(digest, byteorder="big", signed=False)
        for bit in range(64):
            if token_hash & (1 << bit):
                vector[bit] += weight
            else:
                vector[bit] -= weight

    result = 0
    for bit, value in enumerate(vector):
        if value > 0:
            result |= 1 << bit
    return result


def hamming_distance(a: int, b: int) -> int:
    return (a ^ b).bit_count()


def dedupe_events(events: Iterable[Event], *, news_source: str = "news") -> list[Event]:
    """Drop repeated ids and near-duplicate news stories, keeping first occurrences.

    Wire stories get syndicated under slightly different headlines, so news
    events are also compared by title simhash within the same hazard type.
    """
    seen_ids: set[str] = set()
    news_hashes: list[tuple[str, int]] = []
    out: list[Event] = []
    for event in events:
        if event.id in seen_ids:
            continue
        if event.source == news_source:
            sim = simhash64(normalize_title(event.title))
            if any(
                event_type == event.type
                and hamming_distance(sim, other) <= NEAR_DUPLICATE_BITS
                for event_type, other in news_hashes
            ):
                continue
            news_hashes.append((event.type, sim))
        seen_ids.add(event.id)
        out.append(event)
    return out
