"""Build every dashboard view of a dataset in one call.

All engine functions are pure, so the views are independent: each is wrapped
in `dask.delayed` and they are evaluated together with `dask.compute` on the
configured scheduler.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, cast

from dask import delayed, compute  # type: ignore[attr-defined]

from pledge_analytics.aggregate.forecast import forecast
from pledge_analytics.aggregate.insights import advanced_insights, linear_regression
from pledge_analytics.aggregate.metrics import (
    bin_metrics,
    cohort_metrics,
    status_metrics,
    totals,
    zero_pledge_metrics,
)
from pledge_analytics.config import get_settings
from pledge_analytics.geo.aggregation import aggregate_by_zip
from pledge_analytics.models import DashboardReport, EnrichedRecord

log = logging.getLogger(__name__)

VIEWS: dict[str, Any] = {
    "totals": totals,
    "cohort_metrics": cohort_metrics,
    "bin_metrics": bin_metrics,
    "zero_pledge_metrics": zero_pledge_metrics,
    "status_metrics": status_metrics,
    "insights": advanced_insights,
    "regression": linear_regression,
    "forecast": forecast,
    "zip_aggregates": aggregate_by_zip,
}


def build_report(
    records: Iterable[EnrichedRecord],
    scheduler: str | None = None,
) -> DashboardReport:
    """Compute every view of `records` concurrently.

    Args:
        records: Enriched (and possibly filtered) records.
        scheduler: Dask scheduler name; defaults to `Settings.dask_scheduler`.

    Returns:
        `DashboardReport` bundling totals, category tables, insights,
        regression, forecast and ZIP aggregates.
    """
    records = list(records)
    if scheduler is None:
        scheduler = get_settings().dask_scheduler

    log.info("Building report for %d records (scheduler=%s)", len(records), scheduler)

    names = list(VIEWS)
    tasks = [delayed(VIEWS[name])(records) for name in names]

    results = cast(Any, compute)(*tasks, scheduler=scheduler)

    return DashboardReport(**dict(zip(names, results)))
