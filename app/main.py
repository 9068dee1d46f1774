from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

import httpx
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from app.feed import HazardFeed, build_feed
from app.log_config import configure_logging
from app.settings import Settings
from query.filters import spec_from_query


logger = logging.getLogger(__name__)

router = APIRouter()


def _iso(value) -> str | None:
    return value.isoformat().replace("+00:00", "Z") if value is not None else None


def create_app(
    settings: Settings | None = None, *, client: httpx.AsyncClient | None = None
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = settings or Settings()
        configure_logging(resolved.log_level)
        feed = build_feed(resolved, client=client)
        app.state.settings = resolved
        app.state.feed = feed
        logger.info(
            "starting refresh loop every %.0fs over %d sources%s",
            resolved.refresh_interval_seconds,
            len(feed.status),
            " (synthetic only)" if resolved.synthetic_only else "",
        )

        scheduler_task = asyncio.create_task(feed.scheduler.run_forever())
        try:
            yield
        finally:
            scheduler_task.cancel()
            with suppress(asyncio.CancelledError):
                await scheduler_task

    app = FastAPI(lifespan=lifespan)
    app.include_router(router)
    return app


def _feed(request: Request) -> HazardFeed:
    return request.app.state.feed


@router.get("/api/events")
def api_events(
    request: Request,
    types: str | None = None,
    severities: str | None = None,
    active_only: bool = False,
    start: str | None = None,
    end: str | None = None,
) -> JSONResponse:
    try:
        spec = spec_from_query(
            types=types,
            severities=severities,
            active_only=active_only,
            start=start,
            end=end,
        )
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=422)

    feed = _feed(request)
    events = feed.filtered(spec)
    return JSONResponse(
        {
            "events": [e.to_dict() for e in events],
            "count": len(events),
            "refreshed_at": _iso(feed.refreshed_at),
        }
    )


@router.get("/api/status")
def api_status(request: Request) -> JSONResponse:
    return JSONResponse(_feed(request).status_report())


@router.post("/api/refresh")
async def api_refresh(request: Request) -> JSONResponse:
    return JSONResponse({"started": _feed(request).start_refresh()})


@router.post("/api/errors/clear")
def api_clear_errors(request: Request) -> JSONResponse:
    _feed(request).clear_errors()
    return JSONResponse({"cleared": True})


@router.get("/healthz")
def healthz(request: Request) -> JSONResponse:
    feed = _feed(request)
    return JSONResponse(
        {"ok": True, "refreshed_at": _iso(feed.refreshed_at), "events": len(feed.events)}
    )


app = create_app()
