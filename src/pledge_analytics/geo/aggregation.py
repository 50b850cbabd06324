"""ZIP code aggregation for geographic analysis.

Module notes:
- Records without a ZIP code are excluded from every ZIP view; they still
  count in the dataset totals.
- Aggregates are returned in order of first appearance of their ZIP code.
- `delta_percent` is the sentinel ``"n/a"`` when a ZIP had no prior pledges.
"""
from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Iterable, Mapping

from pledge_analytics.aggregate.frame import records_frame
from pledge_analytics.geo.zip_codes import has_zip, normalize_zip
from pledge_analytics.models import (
    DistanceBin,
    DistanceHistogramBin,
    EnrichedRecord,
    ZipAggregate,
    ZipLocation,
)

log = logging.getLogger(__name__)

NOT_AVAILABLE = "n/a"


class HistogramMetric(str, Enum):
    HOUSEHOLDS = "households"
    TOTAL_CURRENT = "total_current"


class ZipSortField(str, Enum):
    ZIP = "zip"
    HOUSEHOLDS = "households"
    TOTAL_CURRENT = "total_current"
    TOTAL_PRIOR = "total_prior"
    AVERAGE = "average"
    DELTA_DOLLAR = "delta_dollar"
    DELTA_PERCENT = "delta_percent"
    DISTANCE_MILES = "distance_miles"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


def aggregate_by_zip(records: Iterable[EnrichedRecord]) -> list[ZipAggregate]:
    """Group records by normalized ZIP code.

    Args:
        records: Enriched records; those without a ZIP code are skipped.

    Returns:
        One `ZipAggregate` per ZIP with household count, pledge totals,
        average current pledge and the prior->current delta.
    """
    with_zip = [r for r in records if has_zip(r)]
    df = records_frame(with_zip)
    if df.empty:
        return []

    df["zip"] = df["zip"].map(normalize_zip)
    grouped = df.groupby("zip", sort=False).agg(
        households=("key", "size"),
        total_current=("pledge_current", "sum"),
        total_prior=("pledge_prior", "sum"),
    )

    out: list[ZipAggregate] = []
    for zip_code, row in grouped.iterrows():
        households = int(row["households"])
        total_current = float(row["total_current"])
        total_prior = float(row["total_prior"])
        delta = total_current - total_prior
        out.append(
            ZipAggregate(
                zip=str(zip_code),
                households=households,
                total_current=total_current,
                total_prior=total_prior,
                average=total_current / households,
                delta_dollar=delta,
                delta_percent=delta / total_prior if total_prior != 0 else NOT_AVAILABLE,
            )
        )

    log.debug("Aggregated %d records into %d ZIP codes", len(df), len(out))
    return out


def attach_locations(
    aggregates: Iterable[ZipAggregate],
    locations: Mapping[str, ZipLocation],
) -> list[ZipAggregate]:
    """Return copies of `aggregates` carrying externally resolved locations.

    Args:
        aggregates: ZIP aggregates.
        locations: Geocoding results keyed by normalized ZIP code.

    Returns:
        New aggregates; ZIPs missing from `locations` are returned unchanged.
    """
    out: list[ZipAggregate] = []
    missing = 0
    for agg in aggregates:
        loc = locations.get(agg.zip)
        if loc is None:
            missing += 1
            out.append(agg)
            continue
        out.append(
            agg.model_copy(
                update={"coordinates": loc.coordinates, "distance_miles": loc.distance_miles}
            )
        )

    if missing:
        log.info("No location available for %d ZIP codes", missing)
    return out


def distance_histogram(
    aggregates: Iterable[ZipAggregate],
    bins: list[DistanceBin],
    metric: HistogramMetric | str = HistogramMetric.HOUSEHOLDS,
) -> list[DistanceHistogramBin]:
    """Sum households and pledges into caller-defined distance bins.

    Args:
        aggregates: ZIP aggregates; those without `distance_miles` are skipped.
        bins: Ordered half-open ``[min, max)`` ranges. The first bin that
            contains a distance receives the aggregate.
        metric: Which sum is reported as `value`.

    Returns:
        One `DistanceHistogramBin` per input bin, in the same order.
    """
    metric = HistogramMetric(metric)
    households = [0] * len(bins)
    totals = [0.0] * len(bins)

    for agg in aggregates:
        if agg.distance_miles is None:
            continue
        for i, bin_ in enumerate(bins):
            if bin_.contains(agg.distance_miles):
                households[i] += agg.households
                totals[i] += agg.total_current
                break

    return [
        DistanceHistogramBin(
            label=bin_.label,
            households=households[i],
            total_current=totals[i],
            value=float(households[i] if metric is HistogramMetric.HOUSEHOLDS else totals[i]),
        )
        for i, bin_ in enumerate(bins)
    ]


def _sort_value(agg: ZipAggregate, field: ZipSortField) -> str | float:
    if field is ZipSortField.DELTA_PERCENT:
        return -math.inf if agg.delta_percent == NOT_AVAILABLE else float(agg.delta_percent)
    if field is ZipSortField.DISTANCE_MILES:
        return math.inf if agg.distance_miles is None else agg.distance_miles
    return getattr(agg, field.value)


def sort_zip_aggregates(
    aggregates: Iterable[ZipAggregate],
    field: ZipSortField | str,
    direction: SortDirection | str = SortDirection.ASC,
) -> list[ZipAggregate]:
    """Return a new list sorted by `field`; equal values keep their order.

    ``"n/a"`` delta percentages sort as negative infinity and missing
    distances as positive infinity. `zip` compares as text, every other field
    numerically.

    Raises:
        ValueError: if `field` or `direction` is not a known value.
    """
    field = ZipSortField(field)
    direction = SortDirection(direction)
    return sorted(
        aggregates,
        key=lambda agg: _sort_value(agg, field),
        reverse=direction is SortDirection.DESC,
    )
