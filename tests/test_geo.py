from __future__ import annotations

import math

import pytest

from pledge_analytics.geo.aggregation import (
    NOT_AVAILABLE,
    aggregate_by_zip,
    attach_locations,
    distance_histogram,
    sort_zip_aggregates,
)
from pledge_analytics.geo.zip_codes import has_zip_data, is_valid_zip, normalize_zip
from pledge_analytics.models import Coordinates, DistanceBin, ZipLocation


# =========================================================
# ZIP CODES
# =========================================================

@pytest.mark.parametrize(
    "raw,expected",
    [
        ("94526", "94526"),
        (" 94526 ", "94526"),
        ("94526-1234", "94526"),
        ("8550", "08550"),
        ("abc", "abc"),
    ],
)
def test_normalize_zip(raw: str, expected: str) -> None:
    assert normalize_zip(raw) == expected


def test_is_valid_zip() -> None:
    assert is_valid_zip("94526")
    assert not is_valid_zip("9452")
    assert not is_valid_zip("94526-1234")


def test_has_zip_data(make_records, zip_records) -> None:
    assert has_zip_data(zip_records)
    assert not has_zip_data(make_records([(30, 100, 0), (40, 0, 0, "   ")]))
    assert not has_zip_data([])


# =========================================================
# AGGREGATION
# =========================================================

def test_aggregate_by_zip(zip_records) -> None:
    aggregates = aggregate_by_zip(zip_records)
    assert [a.zip for a in aggregates] == ["94526", "94582"]

    first = aggregates[0]
    assert first.households == 2
    assert first.total_current == 7000
    assert first.total_prior == 6500
    assert first.average == 3500
    assert first.delta_dollar == 500
    assert first.delta_percent == pytest.approx(0.0769, abs=1e-4)

    second = aggregates[1]
    assert second.households == 2
    assert second.delta_dollar == 1500
    assert first.coordinates is None
    assert first.distance_miles is None


def test_aggregate_by_zip_excludes_records_without_zip(zip_records) -> None:
    households = sum(a.households for a in aggregate_by_zip(zip_records))
    assert households == len(zip_records) - 1


def test_aggregate_by_zip_without_prior(make_records) -> None:
    (agg,) = aggregate_by_zip(make_records([(30, 1000, 0, "10001"), (35, 500, 0, "10001")]))
    assert agg.delta_percent == NOT_AVAILABLE
    assert agg.delta_dollar == 1500


def test_aggregate_by_zip_empty(make_records) -> None:
    assert aggregate_by_zip([]) == []
    assert aggregate_by_zip(make_records([(30, 1000, 0)])) == []


# =========================================================
# LOCATIONS / HISTOGRAM
# =========================================================

@pytest.fixture
def located(zip_records):
    locations = {
        "94526": ZipLocation(
            zip="94526",
            coordinates=Coordinates(latitude=37.82, longitude=-121.99),
            distance_miles=3.5,
        ),
        "94582": ZipLocation(zip="94582", distance_miles=12.0),
    }
    return attach_locations(aggregate_by_zip(zip_records), locations)


def test_attach_locations(located) -> None:
    assert located[0].coordinates == Coordinates(latitude=37.82, longitude=-121.99)
    assert located[0].distance_miles == 3.5
    assert located[1].coordinates is None
    assert located[1].distance_miles == 12.0


def test_attach_locations_leaves_unknown_zip(zip_records) -> None:
    aggregates = aggregate_by_zip(zip_records)
    out = attach_locations(aggregates, {})
    assert out == aggregates
    assert all(a.distance_miles is None for a in out)


def test_distance_histogram(located) -> None:
    bins = [
        DistanceBin(label="0-5", min=0, max=5),
        DistanceBin(label="5-10", min=5, max=10),
        DistanceBin(label="10+", min=10),
    ]
    hist = distance_histogram(located, bins)

    assert [h.label for h in hist] == ["0-5", "5-10", "10+"]
    assert [h.households for h in hist] == [2, 0, 2]
    assert [h.value for h in hist] == [2, 0, 2]
    assert hist[2].total_current == 7000


def test_distance_histogram_total_metric(located) -> None:
    bins = [DistanceBin(label="all", min=0)]
    (only,) = distance_histogram(located, bins, metric="total_current")
    assert only.value == 14000
    assert only.households == 4


def test_distance_histogram_boundaries_are_half_open(located) -> None:
    bins = [DistanceBin(label="near", min=0, max=3.5), DistanceBin(label="far", min=3.5, max=12)]
    hist = distance_histogram(located, bins)
    # 3.5 falls in "far"; 12.0 falls in no bin
    assert [h.households for h in hist] == [0, 2]


def test_distance_histogram_skips_unlocated(zip_records) -> None:
    hist = distance_histogram(aggregate_by_zip(zip_records), [DistanceBin(label="all", min=0)])
    assert hist[0].households == 0
    assert hist[0].value == 0


def test_distance_bin_defaults_to_unbounded() -> None:
    assert DistanceBin(label="any", min=0).max == math.inf


# =========================================================
# SORTING
# =========================================================

def test_sort_zip_aggregates(make_records) -> None:
    aggregates = aggregate_by_zip(make_records([
        (30, 1000, 0, "30000"),
        (40, 3000, 2000, "10000"),
        (50, 2000, 1000, "20000"),
    ]))

    by_zip = sort_zip_aggregates(aggregates, "zip")
    assert [a.zip for a in by_zip] == ["10000", "20000", "30000"]

    by_total = sort_zip_aggregates(aggregates, "total_current", "desc")
    assert [a.zip for a in by_total] == ["10000", "20000", "30000"]

    # "n/a" sorts below every number
    by_percent = sort_zip_aggregates(aggregates, "delta_percent", "asc")
    assert [a.zip for a in by_percent] == ["30000", "10000", "20000"]


def test_sort_zip_aggregates_is_stable(make_records) -> None:
    aggregates = aggregate_by_zip(make_records([
        (30, 1000, 0, "30000"),
        (40, 1000, 0, "10000"),
        (50, 1000, 0, "20000"),
    ]))
    out = sort_zip_aggregates(aggregates, "households", "desc")
    assert [a.zip for a in out] == ["30000", "10000", "20000"]


def test_sort_zip_aggregates_missing_distance_last(zip_records) -> None:
    aggregates = attach_locations(
        aggregate_by_zip(zip_records),
        {"94582": ZipLocation(zip="94582", distance_miles=12.0)},
    )
    out = sort_zip_aggregates(aggregates, "distance_miles")
    assert [a.zip for a in out] == ["94582", "94526"]
    assert out[1].distance_miles is None


def test_sort_zip_aggregates_unknown_field(zip_records) -> None:
    with pytest.raises(ValueError):
        sort_zip_aggregates(aggregate_by_zip(zip_records), "population")


def test_sort_does_not_mutate_input(zip_records) -> None:
    aggregates = aggregate_by_zip(zip_records)
    before = list(aggregates)
    sort_zip_aggregates(aggregates, "zip", "desc")
    assert aggregates == before
