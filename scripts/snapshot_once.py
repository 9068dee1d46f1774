from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from app.feed import build_feed
from app.log_config import configure_logging
from app.settings import Settings
from normalize.models import FilterSpec
from query.filters import spec_from_query


async def _run(settings: Settings, spec: FilterSpec) -> dict:
    feed = build_feed(settings)
    await feed.refresh()
    return {
        "events": [e.to_dict() for e in feed.filtered(spec)],
        "status": feed.status_report(),
    }


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Run one aggregation pass and print the snapshot as JSON."
    )
    parser.add_argument("--types", default=None, help="comma-separated event types")
    parser.add_argument("--severities", default=None)
    parser.add_argument("--active-only", action="store_true")
    parser.add_argument("--synthetic", action="store_true")
    parser.add_argument("--out", type=Path, default=None)
    args = parser.parse_args()

    settings = Settings()
    if args.synthetic:
        settings = settings.model_copy(update={"synthetic_only": True})
    configure_logging(settings.log_level)

    spec = spec_from_query(
        types=args.types, severities=args.severities, active_only=args.active_only
    )
    result = asyncio.run(_run(settings, spec))
    text = json.dumps(result, indent=2, ensure_ascii=False)
    if args.out is None:
        print(text)
        return
    args.out.parent.mkdir(parents=True, exist_ok=True)
    args.out.write_text(text + "\n", encoding="utf-8")
    print(args.out)


if __name__ == "__main__":
    main()
