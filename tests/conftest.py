from datetime import UTC, datetime

import pytest

from geo.gazetteer import Gazetteer, load_gazetteer
from ingest.adapters.base import AdapterContext


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 10, 19, 12, 0, tzinfo=UTC)


@pytest.fixture
def gazetteer() -> Gazetteer:
    return load_gazetteer()


@pytest.fixture
def context(gazetteer: Gazetteer) -> AdapterContext:
    return AdapterContext(
        user_agent="hazard-monitor-tests/0.1", timeout_seconds=2.0, gazetteer=gazetteer
    )
