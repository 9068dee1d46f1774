from __future__ import annotations

from datetime import datetime, timedelta

import httpx

from ingest.adapters.base import AdapterContext, SourceAdapter
from ingest.errors import MissingCredentials, SourceUnavailable
from ingest.fetch import fetch_json
from ingest.schemas import NewsArticle, NewsResponse
from normalize.models import Event
from normalize.normalize import normalize_news_article, to_iso


NEWSAPI_URL = "https://newsapi.org/v2/everything"
NEWS_QUERY = (
    "earthquake OR wildfire OR hurricane OR tornado OR flood OR tsunami "
    "OR volcano OR eruption OR landslide OR drought"
)
NEWS_PAGE_SIZE = 50

# (slug, title, description, publisher, hours ago)
_FALLBACK_ARTICLES: list[tuple[str, str, str, str, float]] = [
    (
        "pacific-quake",
        "Major Earthquake Strikes Pacific Region",
        "A strong earthquake shook coastal areas near Sendai, Japan; no tsunami warning issued.",
        "Global Wire",
        2.0,
    ),
    (
        "california-wildfire",
        "Wildfire Forces Evacuations Near Los Angeles",
        "Crews battle a fast-moving wildfire as residents evacuate in California.",
        "West Coast Daily",
        5.0,
    ),
    (
        "dhaka-floods",
        "Monsoon Flooding Displaces Thousands in Dhaka",
        "Heavy rains cause flooding across low-lying districts of Bangladesh.",
        "Asia Report",
        11.0,
    ),
    (
        "etna-eruption",
        "Etna Eruption Sends Ash Over Sicily",
        "Volcanic activity at Mount Etna disrupts flights in Italy.",
        "Euro Desk",
        30.0,
    ),
]


def fallback_articles(now: datetime) -> list[NewsArticle]:
    return [
        NewsArticle.model_validate(
            {
                "source": {"name": publisher},
                "title": title,
                "description": description,
                "url": f"https://example.org/hazards/{slug}",
                "publishedAt": to_iso(now - timedelta(hours=hours_ago)),
            }
        )
        for slug, title, description, publisher, hours_ago in _FALLBACK_ARTICLES
    ]


class NewsAdapter(SourceAdapter):
    name = "news"
    label = "Hazard News"

    def __init__(self, context: AdapterContext, *, api_key: str | None) -> None:
        super().__init__(context)
        self.api_key = (api_key or "").strip()

    async def fetch(self, client: httpx.AsyncClient, now: datetime) -> list[Event]:
        if not self.api_key:
            raise MissingCredentials(self.name, "NEWS_API_KEY")

        doc = await fetch_json(
            client,
            source=self.name,
            url=NEWSAPI_URL,
            user_agent=self.context.user_agent,
            timeout_seconds=self.context.timeout_seconds,
            params={
                "q": NEWS_QUERY,
                "language": "en",
                "sortBy": "publishedAt",
                "pageSize": str(NEWS_PAGE_SIZE),
                "from": to_iso(now - timedelta(days=2)),
            },
            extra_headers={"X-Api-Key": self.api_key},
        )
        if isinstance(doc, dict) and doc.get("status") == "error":
            raise SourceUnavailable(self.name, "upstream_error", str(doc.get("code")))

        response = self.validate(NewsResponse, doc)
        articles = self.validate_records(NewsArticle, response.articles)
        events = [self._normalize(a, now) for a in articles]
        return [e for e in events if e is not None][: self.context.max_events]

    def fallback(self, now: datetime) -> list[Event]:
        events = [self._normalize(a, now) for a in fallback_articles(now)]
        return [e for e in events if e is not None]

    def _normalize(self, article: NewsArticle, now: datetime) -> Event | None:
        return normalize_news_article(
            article=article,
            now=now,
            gazetteer=self.context.gazetteer,
            source=self.name,
            jitter=self.context.jitter,
        )
