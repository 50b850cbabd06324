"""Next-year projections built on the insight metrics.

The projections are simple heuristics: the observed prior->current growth rate
is applied again, bracketed by the quartiles of renewed households' percent
changes; attrition follows the observed retention rate; households that
decreased are assumed to have a 50% chance of decreasing again.
"""
from __future__ import annotations

import math
from typing import Iterable

from pledge_analytics.aggregate.frame import records_frame
from pledge_analytics.aggregate.insights import quartiles, retention_rate
from pledge_analytics.aggregate.metrics import ratio
from pledge_analytics.models import (
    EnrichedRecord,
    ForecastMetrics,
    GrowthScenario,
    GrowthScenarios,
    PledgeStatus,
    RetentionForecast,
    RevenueAtRisk,
    UpgradeTrend,
)

REPEAT_DECREASE_SHARE = 0.5
OPTIMISTIC_GROWTH_MULTIPLIER = 1.5
PROJECTION_YEARS = 3


def round_half_up(value: float) -> int:
    """Round a non-negative count estimate to the nearest integer, .5 upwards."""
    return int(math.floor(value + 0.5))


def forecast(records: Iterable[EnrichedRecord]) -> ForecastMetrics:
    """Project next year's pledges from the current and prior periods.

    Args:
        records: Enriched records.

    Returns:
        `ForecastMetrics` with growth scenarios, a retention forecast, revenue
        at risk and an upgrade trend. Every figure is 0 rather than undefined
        when its base is empty.
    """
    records = list(records)
    df = records_frame(records)
    renewed = df[df["status"] == PledgeStatus.RENEWED.value]

    total_current = float(df["pledge_current"].sum())
    total_prior = float(df["pledge_prior"].sum())
    growth_rate = ratio(total_current - total_prior, total_prior)

    # -----------------------------
    # Retention
    # -----------------------------
    retention = retention_rate(records)
    pledgers = int((df["pledge_current"] > 0).sum())
    expected_renewals = round_half_up(pledgers * retention)
    expected_attrition = pledgers - expected_renewals

    # -----------------------------
    # Revenue at risk
    # -----------------------------
    lapsed = df[(df["pledge_prior"] > 0) & (df["pledge_current"] == 0)]
    lapsed_amount = float(lapsed["pledge_prior"].sum())

    decreased = renewed[renewed["change_dollar"] < 0]
    avg_decrease = ratio(float(decreased["change_dollar"].abs().sum()), len(decreased))
    likely_decreases = round_half_up(len(decreased) * REPEAT_DECREASE_SHARE)
    estimated_loss = likely_decreases * avg_decrease

    # -----------------------------
    # Upgrades
    # -----------------------------
    upgraded = renewed[renewed["change_dollar"] > 0]
    upgrade_rate = ratio(len(upgraded), len(renewed))
    avg_upgrade = ratio(float(upgraded["change_dollar"].sum()), len(upgraded))
    projected_upgrades = round_half_up(expected_renewals * upgrade_rate)

    if total_current > 0:
        three_year = total_current * (1 + avg_upgrade / total_current * upgrade_rate) ** PROJECTION_YEARS
    else:
        three_year = 0.0

    # -----------------------------
    # Growth scenarios
    # -----------------------------
    percent_changes = renewed["change_percent"].dropna().to_numpy(dtype=float)
    q1, q3 = quartiles(percent_changes)
    conservative_rate = min(q1, 0.0)
    optimistic_rate = max(q3, growth_rate * OPTIMISTIC_GROWTH_MULTIPLIER)

    def scenario(rate: float) -> GrowthScenario:
        return GrowthScenario(rate=rate, amount=total_current * (1 + rate))

    return ForecastMetrics(
        growth_rate=growth_rate,
        scenarios=GrowthScenarios(
            conservative=scenario(conservative_rate),
            expected=scenario(growth_rate),
            optimistic=scenario(optimistic_rate),
        ),
        retention=RetentionForecast(
            expected_renewals=expected_renewals,
            expected_attrition=expected_attrition,
            attrition_rate=1.0 - retention,
            replacement_needed=expected_attrition,
        ),
        revenue_at_risk=RevenueAtRisk(
            lapsed_households=len(lapsed),
            lapsed_amount=lapsed_amount,
            likely_decreases=likely_decreases,
            estimated_decrease_loss=estimated_loss,
            total_at_risk=lapsed_amount + estimated_loss,
        ),
        upgrade_trend=UpgradeTrend(
            current_upgrade_rate=upgrade_rate,
            average_upgrade_amount=avg_upgrade,
            projected_next_year=total_current + projected_upgrades * avg_upgrade,
            three_year_projection=three_year,
        ),
    )
