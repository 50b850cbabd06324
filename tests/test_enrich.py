from __future__ import annotations

import pytest
from pydantic import ValidationError

from pledge_analytics.enrich.rows import enrich, household_key
from pledge_analytics.models import PledgeStatus, RawRecord

RAW = [
    RawRecord(age=30, pledge_current=2000, pledge_prior=1500, zip="94526"),
    RawRecord(age=35, pledge_current=1800, pledge_prior=0),
    RawRecord(age=35, pledge_current=1800, pledge_prior=0),
]


def test_enrich_derives_fields() -> None:
    first, second, _ = enrich("giving.xlsx", RAW)

    assert first.status is PledgeStatus.RENEWED
    assert first.change_dollar == 500
    assert first.change_percent == pytest.approx(1 / 3)
    assert first.zip == "94526"

    assert second.status is PledgeStatus.CURRENT_ONLY
    assert second.change_dollar == 1800
    assert second.change_percent is None


def test_enrich_is_deterministic() -> None:
    assert enrich("giving.xlsx", RAW) == enrich("giving.xlsx", RAW)


def test_keys_unique_even_for_identical_rows() -> None:
    keys = [r.key for r in enrich("giving.xlsx", RAW)]
    assert len(set(keys)) == len(keys)
    assert all(k.startswith("hh_") and len(k) == 19 for k in keys)


def test_keys_depend_on_dataset_id() -> None:
    a = enrich("a.csv", RAW)
    b = enrich("b.csv", RAW)
    assert [r.key for r in a] != [r.key for r in b]


def test_key_ignores_zip() -> None:
    with_zip = RawRecord(age=30, pledge_current=2000, pledge_prior=1500, zip="94526")
    without_zip = RawRecord(age=30, pledge_current=2000, pledge_prior=1500)
    assert household_key("d", 0, with_zip) == household_key("d", 0, without_zip)


def test_enriched_records_are_immutable() -> None:
    record = enrich("giving.xlsx", RAW)[0]
    with pytest.raises(ValidationError):
        record.pledge_current = 0  # type: ignore[misc]


def test_enrich_does_not_mutate_input() -> None:
    raw = list(RAW)
    enrich("giving.xlsx", raw)
    assert raw == RAW


def test_enrich_empty_dataset() -> None:
    assert enrich("empty.csv", []) == []
