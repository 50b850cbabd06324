"""Advanced insight calculations.

Higher-order statistics over enriched records: retention, upgrade/downgrade
rates, pledge concentration, age statistics, new-vs-renewed comparison,
generational giving, change behavior and the prior->current regression used
by forecasts.

Quantile conventions:
- Concentration tiers take the top ``ceil(n * share)`` pledging households.
- Quartiles use linear interpolation between order statistics (numpy's
  default ``percentile`` method).
"""
from __future__ import annotations

from typing import Iterable

import numpy as np
import pandas as pd

from pledge_analytics.aggregate.frame import records_frame
from pledge_analytics.aggregate.metrics import average_and_median, ratio
from pledge_analytics.models import (
    AdvancedInsights,
    AgeCohort,
    AgeStats,
    CohortAverage,
    ConcentrationTier,
    EnrichedRecord,
    GenerationalGiving,
    NewVsRenewedAverage,
    PledgeChangeBehavior,
    PledgeConcentration,
    PledgeStatus,
    RegressionFit,
    UpgradeDowngradeRates,
)

CONCENTRATION_PERCENTS = (10, 25, 50)

STABLE_CHANGE_SHARE = 0.10
SIGNIFICANT_CHANGE_DOLLARS = 500

# (generation, label, min age, max age), both bounds inclusive
GENERATIONS: tuple[tuple[str, str, int, float], ...] = (
    ("Silent Generation", "79+", 79, float("inf")),
    ("Baby Boomers", "60-78", 60, 78),
    ("Gen X", "44-59", 44, 59),
    ("Millennials", "28-43", 28, 43),
    ("Gen Z", "12-27", 12, 27),
)

NEUTRAL_FIT = RegressionFit(slope=1.0, intercept=0.0, r_squared=0.0)

# spread below this share of the largest magnitude counts as a constant column
CONSTANT_RELATIVE_TOLERANCE = 1e-9


def _renewed(df: pd.DataFrame) -> pd.DataFrame:
    return df[df["status"] == PledgeStatus.RENEWED.value]


def _mean(values: pd.Series) -> float:
    return float(values.mean()) if not values.empty else 0.0


def _is_constant(values: np.ndarray) -> bool:
    return bool(np.ptp(values) <= CONSTANT_RELATIVE_TOLERANCE * np.abs(values).max())


def quartiles(values: np.ndarray) -> tuple[float, float]:
    """Return the first and third quartile, ``(0.0, 0.0)`` for no values."""
    if values.size == 0:
        return 0.0, 0.0
    q1, q3 = np.percentile(values, [25, 75])
    return float(q1), float(q3)


# =========================================================
# RETENTION / UPGRADES
# =========================================================

def retention_rate(records: Iterable[EnrichedRecord]) -> float:
    """Renewed households over households with a prior pledge (0 if none)."""
    df = records_frame(records)
    had_prior = int((df["pledge_prior"] > 0).sum())
    return ratio(len(_renewed(df)), had_prior)


def upgrade_downgrade_rates(records: Iterable[EnrichedRecord]) -> UpgradeDowngradeRates:
    """Share of renewed households that increased or decreased their pledge."""
    renewed = _renewed(records_frame(records))
    upgraded = int((renewed["change_dollar"] > 0).sum())
    downgraded = int((renewed["change_dollar"] < 0).sum())

    return UpgradeDowngradeRates(
        upgraded=upgraded,
        downgraded=downgraded,
        no_change=int((renewed["change_dollar"] == 0).sum()),
        upgrade_rate=ratio(upgraded, len(renewed)),
        downgrade_rate=ratio(downgraded, len(renewed)),
    )


# =========================================================
# CONCENTRATION
# =========================================================

def pledge_concentration(records: Iterable[EnrichedRecord]) -> PledgeConcentration:
    """Return the dollars held by the top 10%, 25% and 50% of pledgers.

    Args:
        records: Enriched records; only positive current pledges count.

    Returns:
        `PledgeConcentration` where each tier reports ``k = ceil(n * share)``
        households, their summed pledges and that sum as a percentage of all
        pledged dollars.
    """
    df = records_frame(records)
    amounts = np.sort(df.loc[df["pledge_current"] > 0, "pledge_current"].to_numpy(dtype=float))[::-1]
    n = amounts.size
    total = float(amounts.sum())

    tiers: list[ConcentrationTier] = []
    for percent in CONCENTRATION_PERCENTS:
        k = -(-n * percent // 100)
        amount = float(amounts[:k].sum())
        tiers.append(
            ConcentrationTier(
                threshold=percent / 100,
                households=k,
                amount=amount,
                percent_of_total=ratio(amount, total) * 100,
            )
        )

    return PledgeConcentration(
        top_10_percent=tiers[0],
        top_25_percent=tiers[1],
        top_50_percent=tiers[2],
    )


# =========================================================
# AGE
# =========================================================

def age_stats(records: Iterable[EnrichedRecord]) -> AgeStats:
    """Mean, median and mode of age over all records, pledging or not.

    When several ages are equally frequent the oldest one is the mode.
    """
    ages = records_frame(records)["age"].to_numpy()
    if ages.size == 0:
        return AgeStats(mean=0.0, median=0.0, mode=0)

    values, counts = np.unique(ages, return_counts=True)
    mode = int(values[counts == counts.max()].max())
    return AgeStats(mean=float(ages.mean()), median=float(np.median(ages)), mode=mode)


def average_pledge_by_age(records: Iterable[EnrichedRecord]) -> list[CohortAverage]:
    """Average current pledge per age cohort, ignoring zero pledges."""
    df = records_frame(records)
    pledging = df[df["pledge_current"] > 0]
    return [
        CohortAverage(
            cohort=cohort,
            average=_mean(pledging.loc[pledging["age_cohort"] == cohort.value, "pledge_current"]),
        )
        for cohort in AgeCohort
    ]


def generational_giving(records: Iterable[EnrichedRecord]) -> list[GenerationalGiving]:
    """Return count, total and average pledge per named generation.

    Zero pledges are excluded; ages below the youngest generation fall in no
    bucket.
    """
    df = records_frame(records)
    pledging = df[df["pledge_current"] > 0]

    out: list[GenerationalGiving] = []
    for generation, age_range, lower, upper in GENERATIONS:
        amounts = pledging.loc[
            (pledging["age"] >= lower) & (pledging["age"] <= upper), "pledge_current"
        ]
        total = float(amounts.sum())
        out.append(
            GenerationalGiving(
                generation=generation,
                age_range=age_range,
                count=len(amounts),
                total=total,
                average=ratio(total, len(amounts)),
            )
        )
    return out


# =========================================================
# NEW VS RENEWED / CHANGE BEHAVIOR
# =========================================================

def new_vs_renewed_average(records: Iterable[EnrichedRecord]) -> NewVsRenewedAverage:
    """Compare the average pledge of new (current-only) and renewed households."""
    df = records_frame(records)
    pledging = df[df["pledge_current"] > 0]
    current_only = _mean(
        pledging.loc[pledging["status"] == PledgeStatus.CURRENT_ONLY.value, "pledge_current"]
    )
    renewed = _mean(
        pledging.loc[pledging["status"] == PledgeStatus.RENEWED.value, "pledge_current"]
    )
    return NewVsRenewedAverage(
        current_only=current_only,
        renewed=renewed,
        difference=renewed - current_only,
    )


def pledge_change_behavior(records: Iterable[EnrichedRecord]) -> PledgeChangeBehavior:
    """Describe how renewed households changed their pledge.

    Args:
        records: Enriched records; only renewed households are considered.

    Returns:
        `PledgeChangeBehavior` with the share of stable households (change
        within 10% of the prior pledge), the share that moved by more than
        $500, the range of dollar changes and their first/third quartiles.
        All fields are 0 when there are no renewed households.
    """
    renewed = _renewed(records_frame(records))
    changes = renewed["change_dollar"].to_numpy(dtype=float)
    if changes.size == 0:
        return PledgeChangeBehavior(
            range_min=0.0,
            range_max=0.0,
            percent_stable=0.0,
            percent_significant_change=0.0,
            q1=0.0,
            q3=0.0,
        )

    priors = renewed["pledge_prior"].to_numpy(dtype=float)
    stable = np.abs(changes) <= STABLE_CHANGE_SHARE * priors
    significant = np.abs(changes) > SIGNIFICANT_CHANGE_DOLLARS
    q1, q3 = quartiles(changes)

    return PledgeChangeBehavior(
        range_min=float(changes.min()),
        range_max=float(changes.max()),
        percent_stable=float(stable.mean()),
        percent_significant_change=float(significant.mean()),
        q1=q1,
        q3=q3,
    )


# =========================================================
# REGRESSION
# =========================================================

def linear_regression(records: Iterable[EnrichedRecord]) -> RegressionFit:
    """Fit ``pledge_current = slope * pledge_prior + intercept`` by least squares.

    Only households with both pledges positive take part. With no such
    household the neutral identity projection (slope 1, intercept 0,
    r_squared 0) is returned. When every prior pledge is the same the slope
    falls back to 1 and the line passes through the mean point; when every
    current pledge is the same the fit reproduces them exactly and r_squared
    is 1. A single household is therefore a perfect but meaningless fit.
    """
    df = records_frame(records)
    both = df[(df["pledge_prior"] > 0) & (df["pledge_current"] > 0)]
    if both.empty:
        return NEUTRAL_FIT

    x = both["pledge_prior"].to_numpy(dtype=float)
    y = both["pledge_current"].to_numpy(dtype=float)
    mean_x = x.mean()
    mean_y = y.mean()

    if _is_constant(x):
        slope = 1.0
    else:
        slope = float(((x - mean_x) * (y - mean_y)).sum() / ((x - mean_x) ** 2).sum())
    intercept = float(mean_y - slope * mean_x)

    if _is_constant(y):
        r_squared = 1.0
    else:
        ss_total = float(((y - mean_y) ** 2).sum())
        ss_residual = float(((y - (slope * x + intercept)) ** 2).sum())
        r_squared = 1.0 - ss_residual / ss_total

    return RegressionFit(slope=slope, intercept=intercept, r_squared=r_squared)


# =========================================================
# BUNDLE
# =========================================================

def advanced_insights(records: Iterable[EnrichedRecord]) -> AdvancedInsights:
    """Compute every insight above for one record set."""
    records = list(records)
    return AdvancedInsights(
        retention_rate=retention_rate(records),
        average_pledge_by_age=average_pledge_by_age(records),
        pledge_concentration=pledge_concentration(records),
        new_vs_renewed_average=new_vs_renewed_average(records),
        upgrade_downgrade_rates=upgrade_downgrade_rates(records),
        pledge_change_behavior=pledge_change_behavior(records),
        age_stats=age_stats(records),
        generational_giving=generational_giving(records),
    )
