from __future__ import annotations

from typing import Callable

import pytest

from pledge_analytics.enrich.rows import enrich
from pledge_analytics.models import EnrichedRecord, RawRecord


def build_records(rows: list[tuple], dataset_id: str = "test.csv") -> list[EnrichedRecord]:
    raw = [
        RawRecord(
            age=r[0],
            pledge_current=r[1],
            pledge_prior=r[2],
            zip=r[3] if len(r) > 3 else None,
        )
        for r in rows
    ]
    return enrich(dataset_id, raw)


@pytest.fixture
def make_records() -> Callable[..., list[EnrichedRecord]]:
    return build_records


@pytest.fixture
def sample_records() -> list[EnrichedRecord]:
    return build_records([
        (35, 2000, 1500),
        (40, 1800, 0),
        (50, 0, 2000),
        (60, 0, 0),
    ])


@pytest.fixture
def zip_records() -> list[EnrichedRecord]:
    return build_records([
        (45, 3000, 2500, "94526"),
        (52, 4000, 4000, "94526-1234"),
        (38, 2000, 0, "94582"),
        (65, 5000, 5500, " 94582 "),
        (42, 1500, 1500),
    ])
