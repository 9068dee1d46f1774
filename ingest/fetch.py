from __future__ import annotations

import json
import logging

import httpx

from ingest.errors import MalformedPayload, SourceUnavailable


logger = logging.getLogger(__name__)


def build_timeout(read_seconds: float) -> httpx.Timeout:
    return httpx.Timeout(connect=5.0, read=read_seconds, write=5.0, pool=5.0)


async def fetch_bytes(
    client: httpx.AsyncClient,
    *,
    source: str,
    url: str,
    user_agent: str,
    timeout_seconds: float,
    params: dict[str, str] | None = None,
    extra_headers: dict[str, str] | None = None,
) -> bytes:
    headers = {
        "User-Agent": user_agent,
        "Accept": "application/json, application/geo+json, text/csv, */*",
    }
    if extra_headers:
        headers.update(extra_headers)

    try:
        response = await client.get(
            url, params=params, headers=headers, timeout=build_timeout(timeout_seconds)
        )
    except httpx.TimeoutException as e:
        raise SourceUnavailable(source, "timeout") from e
    except httpx.RequestError as e:
        raise SourceUnavailable(
            source, f"request_error:{e.__class__.__name__}"
        ) from e

    if response.status_code != 200:
        raise SourceUnavailable(source, f"http_{response.status_code}")

    logger.debug(
        "fetched %s (%d bytes) for %s", url, len(response.content), source
    )
    return response.content


async def fetch_json(
    client: httpx.AsyncClient,
    *,
    source: str,
    url: str,
    user_agent: str,
    timeout_seconds: float,
    params: dict[str, str] | None = None,
    extra_headers: dict[str, str] | None = None,
) -> object:
    content = await fetch_bytes(
        client,
        source=source,
        url=url,
        user_agent=user_agent,
        timeout_seconds=timeout_seconds,
        params=params,
        extra_headers=extra_headers,
    )
    try:
        return json.loads(content)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedPayload(source, "parse_error") from e
