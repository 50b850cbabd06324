"""Aggregation engine.

Functions in this module build the dashboard tables from enriched records.
Each function accepts any iterable of `EnrichedRecord`, materializes it as a
pandas frame (see `frame.records_frame`) and returns Pydantic models.

Expectations:
- Category tables always contain every category, in enum order, even when a
  category (or the whole dataset) is empty.
- Empty input yields zero counts, zero sums, zero rates and a ``None``
  `delta_percent`; never NaN.
"""
from __future__ import annotations

from typing import Iterable

import numpy as np
import pandas as pd

from pledge_analytics.aggregate.frame import records_frame
from pledge_analytics.models import (
    AgeCohort,
    BinMetrics,
    CohortMetrics,
    EnrichedRecord,
    PledgeBin,
    PledgeStatus,
    StatusMetrics,
    TotalsSummary,
    ZeroPledgeMetrics,
)

STATUS_ORDER = [s.value for s in PledgeStatus]
COHORT_ORDER = [c.value for c in AgeCohort]
BIN_ORDER = [b.value for b in PledgeBin]


# =========================================================
# HELPERS
# =========================================================

def ratio(numerator: float, denominator: float) -> float:
    """Return ``numerator / denominator``, or 0 when the denominator is 0."""
    if denominator == 0:
        return 0.0
    return float(numerator) / float(denominator)


def average_and_median(values: pd.Series) -> tuple[float, float]:
    """Return the mean and median of `values`, ``(0.0, 0.0)`` when empty.

    The median of an even-sized set is the mean of the two central values.
    """
    if values.empty:
        return 0.0, 0.0
    arr = values.to_numpy(dtype=float)
    return float(arr.mean()), float(np.median(arr))


def _grouped(df: pd.DataFrame, by: str, order: list[str]) -> pd.DataFrame:
    """Count rows and sum both pledges per category, reindexed to `order`."""
    counts = df.groupby(by).size().reindex(order, fill_value=0)
    sums = (
        df.groupby(by)[["pledge_current", "pledge_prior"]]
        .sum()
        .reindex(order, fill_value=0.0)
    )
    return pd.DataFrame(
        {
            "households": counts,
            "total_current": sums["pledge_current"],
            "total_prior": sums["pledge_prior"],
        },
        index=order,
    )


# =========================================================
# TOTALS
# =========================================================

def totals(records: Iterable[EnrichedRecord]) -> TotalsSummary:
    """Return dataset-wide totals and the household count per status.

    Args:
        records: Enriched records.

    Returns:
        `TotalsSummary` whose `delta_percent` is ``None`` when the prior total
        is 0.
    """
    df = records_frame(records)
    total_current = float(df["pledge_current"].sum())
    total_prior = float(df["pledge_prior"].sum())
    delta = total_current - total_prior
    counts = df.groupby("status").size().reindex(STATUS_ORDER, fill_value=0)

    return TotalsSummary(
        households=len(df),
        total_current=total_current,
        total_prior=total_prior,
        delta_dollar=delta,
        delta_percent=delta / total_prior if total_prior != 0 else None,
        renewed=int(counts[PledgeStatus.RENEWED.value]),
        current_only=int(counts[PledgeStatus.CURRENT_ONLY.value]),
        prior_only=int(counts[PledgeStatus.PRIOR_ONLY.value]),
        no_pledge_both=int(counts[PledgeStatus.NO_PLEDGE_BOTH.value]),
    )


# =========================================================
# COHORTS
# =========================================================

def cohort_metrics(records: Iterable[EnrichedRecord]) -> list[CohortMetrics]:
    """Return one `CohortMetrics` per age cohort.

    Args:
        records: Enriched records.

    Returns:
        Four entries in cohort order. Averages and medians cover the cohort's
        pledging households; the renewal rate divides renewed households by
        households with a prior pledge.
    """
    df = records_frame(records)
    grouped = _grouped(df, "age_cohort", COHORT_ORDER)

    out: list[CohortMetrics] = []
    for cohort in AgeCohort:
        members = df[df["age_cohort"] == cohort.value]
        pledging = members.loc[members["pledge_current"] > 0, "pledge_current"]
        average, median = average_and_median(pledging)

        had_prior = int((members["pledge_prior"] > 0).sum())
        renewed = members[members["status"] == PledgeStatus.RENEWED.value]
        row = grouped.loc[cohort.value]

        out.append(
            CohortMetrics(
                cohort=cohort,
                households=int(row["households"]),
                total_current=float(row["total_current"]),
                total_prior=float(row["total_prior"]),
                average_current=average,
                median_current=median,
                renewal_rate=ratio(len(renewed), had_prior),
                increased=int((renewed["change_dollar"] > 0).sum()),
                decreased=int((renewed["change_dollar"] < 0).sum()),
                no_change=int((renewed["change_dollar"] == 0).sum()),
            )
        )
    return out


# =========================================================
# PLEDGE BINS
# =========================================================

def bin_metrics(records: Iterable[EnrichedRecord]) -> list[BinMetrics]:
    """Return one `BinMetrics` per pledge bin, over the current pledge.

    Records with no current pledge belong to no bin; see
    `zero_pledge_metrics`.
    """
    df = records_frame(records)
    binned = df[df["pledge_bin"].notnull()]

    out: list[BinMetrics] = []
    for bin_ in PledgeBin:
        amounts = binned.loc[binned["pledge_bin"] == bin_.value, "pledge_current"]
        average, median = average_and_median(amounts)
        out.append(
            BinMetrics(
                bin=bin_,
                households=len(amounts),
                total=float(amounts.sum()),
                average=average,
                median=median,
            )
        )
    return out


def zero_pledge_metrics(records: Iterable[EnrichedRecord]) -> ZeroPledgeMetrics:
    """Count households whose current pledge is 0, whatever their prior."""
    df = records_frame(records)
    zero = df[df["pledge_current"] == 0]
    return ZeroPledgeMetrics(households=len(zero), total=float(zero["pledge_current"].sum()))


# =========================================================
# STATUS
# =========================================================

def status_metrics(records: Iterable[EnrichedRecord]) -> list[StatusMetrics]:
    """Return household count and pledge totals per status, in status order."""
    df = records_frame(records)
    grouped = _grouped(df, "status", STATUS_ORDER)

    return [
        StatusMetrics(
            status=status,
            households=int(grouped.loc[status.value, "households"]),
            total_current=float(grouped.loc[status.value, "total_current"]),
            total_prior=float(grouped.loc[status.value, "total_prior"]),
        )
        for status in PledgeStatus
    ]
