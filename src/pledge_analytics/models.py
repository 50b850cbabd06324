"""Pydantic models for records and derived metrics.

These models define the schema of raw and enriched pledge records, the closed
vocabularies used to classify them (status, age cohort, pledge bin), and the
metric objects handed to the presentation and export layers.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# =========================================================
# VOCABULARIES
# =========================================================

class PledgeStatus(str, Enum):
    """Renewal status derived from the signs of the two pledge amounts."""
    RENEWED = "renewed"
    CURRENT_ONLY = "current-only"
    PRIOR_ONLY = "prior-only"
    NO_PLEDGE_BOTH = "no-pledge-both"

    def display_name(self, short: bool = False) -> str:
        """Return the label shown in dashboards and exports."""
        names = _STATUS_DISPLAY_NAMES_SHORT if short else _STATUS_DISPLAY_NAMES
        return names[self]


_STATUS_DISPLAY_NAMES = {
    PledgeStatus.RENEWED: "Renewed",
    PledgeStatus.CURRENT_ONLY: "New: Current Year Only",
    PledgeStatus.PRIOR_ONLY: "Lapsed: Prior Year Only",
    PledgeStatus.NO_PLEDGE_BOTH: "No Pledge",
}

_STATUS_DISPLAY_NAMES_SHORT = {
    PledgeStatus.RENEWED: "Renewed",
    PledgeStatus.CURRENT_ONLY: "New",
    PledgeStatus.PRIOR_ONLY: "Lapsed",
    PledgeStatus.NO_PLEDGE_BOTH: "No Pledge",
}


def status_from_display_name(name: str) -> PledgeStatus | None:
    """Map a long display name back to its status, or ``None`` when unknown."""
    for status, label in _STATUS_DISPLAY_NAMES.items():
        if label == name:
            return status
    return None


class AgeCohort(str, Enum):
    UNDER_40 = "Under 40"
    AGE_40_49 = "40-49"
    AGE_50_64 = "50-64"
    AGE_65_PLUS = "65+"


class PledgeBin(str, Enum):
    BIN_1_1799 = "$1-$1,799"
    BIN_1800_2499 = "$1,800-$2,499"
    BIN_2500_3599 = "$2,500-$3,599"
    BIN_3600_5399 = "$3,600-$5,399"
    BIN_5400_PLUS = "$5,400+"


class ChangeDirection(str, Enum):
    INCREASED = "increased"
    DECREASED = "decreased"
    NO_CHANGE = "no-change"


# =========================================================
# RECORDS
# =========================================================

class RawRecord(BaseModel):
    """Schema for one household as delivered by the import layer."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    age: int = Field(..., ge=0)
    pledge_current: float = Field(..., ge=0)
    pledge_prior: float = Field(..., ge=0)
    zip: str | None = None


class EnrichedRecord(RawRecord):
    """Schema for a classified household record.

    Attributes:
        key: Stable identifier derived from the dataset id, the row position
            and the numeric fields.
        status: Renewal status of the household.
        change_dollar: ``pledge_current - pledge_prior``.
        change_percent: Relative change, ``None`` when the prior pledge is 0.
    """
    key: str
    status: PledgeStatus
    change_dollar: float
    change_percent: float | None


# =========================================================
# AGGREGATION ENGINE
# =========================================================

class TotalsSummary(BaseModel):
    """Dataset-wide totals and status counts."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    households: int = Field(..., ge=0)
    total_current: float
    total_prior: float
    delta_dollar: float
    delta_percent: float | None
    renewed: int = Field(..., ge=0)
    current_only: int = Field(..., ge=0)
    prior_only: int = Field(..., ge=0)
    no_pledge_both: int = Field(..., ge=0)


class CohortMetrics(BaseModel):
    """Per age cohort metrics.

    `average_current` and `median_current` are computed over the cohort's
    pledging households only; `renewal_rate` is renewed households divided by
    households that pledged in the prior period.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)
    cohort: AgeCohort
    households: int = Field(..., ge=0)
    total_current: float
    total_prior: float
    average_current: float
    median_current: float
    renewal_rate: float = Field(..., ge=0, le=1)
    increased: int = Field(..., ge=0)
    decreased: int = Field(..., ge=0)
    no_change: int = Field(..., ge=0)


class BinMetrics(BaseModel):
    """Per pledge bin metrics over the current pledge."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    bin: PledgeBin
    households: int = Field(..., ge=0)
    total: float
    average: float
    median: float


class ZeroPledgeMetrics(BaseModel):
    """Households without a current pledge, reported next to the bins."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    label: Literal["$0"] = "$0"
    households: int = Field(..., ge=0)
    total: float = 0.0


class StatusMetrics(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    status: PledgeStatus
    households: int = Field(..., ge=0)
    total_current: float
    total_prior: float


# =========================================================
# ADVANCED INSIGHTS
# =========================================================

class UpgradeDowngradeRates(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    upgraded: int = Field(..., ge=0)
    downgraded: int = Field(..., ge=0)
    no_change: int = Field(..., ge=0)
    upgrade_rate: float
    downgrade_rate: float


class ConcentrationTier(BaseModel):
    """Share of pledged dollars held by the top households."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    threshold: float
    households: int = Field(..., ge=0)
    amount: float
    percent_of_total: float


class PledgeConcentration(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    top_10_percent: ConcentrationTier
    top_25_percent: ConcentrationTier
    top_50_percent: ConcentrationTier


class AgeStats(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    mean: float
    median: float
    mode: int


class NewVsRenewedAverage(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    current_only: float
    renewed: float
    difference: float


class GenerationalGiving(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    generation: str
    age_range: str
    count: int = Field(..., ge=0)
    total: float
    average: float


class PledgeChangeBehavior(BaseModel):
    """Distribution of dollar changes among renewed households."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    range_min: float
    range_max: float
    percent_stable: float
    percent_significant_change: float
    q1: float
    q3: float


class CohortAverage(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    cohort: AgeCohort
    average: float


class RegressionFit(BaseModel):
    """Least-squares fit of current pledge on prior pledge."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    slope: float
    intercept: float
    r_squared: float

    def predict(self, prior: float) -> float:
        return self.slope * prior + self.intercept


class AdvancedInsights(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    retention_rate: float
    average_pledge_by_age: list[CohortAverage]
    pledge_concentration: PledgeConcentration
    new_vs_renewed_average: NewVsRenewedAverage
    upgrade_downgrade_rates: UpgradeDowngradeRates
    pledge_change_behavior: PledgeChangeBehavior
    age_stats: AgeStats
    generational_giving: list[GenerationalGiving]


# =========================================================
# FORECASTS
# =========================================================

class GrowthScenario(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    rate: float
    amount: float


class GrowthScenarios(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    conservative: GrowthScenario
    expected: GrowthScenario
    optimistic: GrowthScenario


class RetentionForecast(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    expected_renewals: int = Field(..., ge=0)
    expected_attrition: int = Field(..., ge=0)
    attrition_rate: float
    replacement_needed: int = Field(..., ge=0)


class RevenueAtRisk(BaseModel):
    """Prior dollars lost to lapsed households plus likely repeat decreases."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    lapsed_households: int = Field(..., ge=0)
    lapsed_amount: float
    likely_decreases: int = Field(..., ge=0)
    estimated_decrease_loss: float
    total_at_risk: float


class UpgradeTrend(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    current_upgrade_rate: float
    average_upgrade_amount: float
    projected_next_year: float
    three_year_projection: float


class ForecastMetrics(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    growth_rate: float
    scenarios: GrowthScenarios
    retention: RetentionForecast
    revenue_at_risk: RevenueAtRisk
    upgrade_trend: UpgradeTrend


# =========================================================
# GEOGRAPHY
# =========================================================

class Coordinates(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class ZipLocation(BaseModel):
    """Geocoding result for one ZIP, resolved outside this package."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    zip: str
    coordinates: Coordinates | None = None
    distance_miles: float | None = Field(default=None, ge=0)


class ZipAggregate(BaseModel):
    """Totals for all households sharing a normalized ZIP code.

    `delta_percent` is the sentinel ``"n/a"`` when the ZIP had no prior
    pledges. `coordinates` and `distance_miles` are only present once
    external locations have been attached.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)
    zip: str
    households: int = Field(..., ge=1)
    total_current: float
    total_prior: float
    average: float
    delta_dollar: float
    delta_percent: float | Literal["n/a"]
    coordinates: Coordinates | None = None
    distance_miles: float | None = None


class DistanceBin(BaseModel):
    """Caller-supplied half-open mileage range ``[min, max)``."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    label: str
    min: float = Field(..., ge=0)
    max: float = math.inf

    def contains(self, miles: float) -> bool:
        return self.min <= miles < self.max


class DistanceHistogramBin(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)
    label: str
    households: int = Field(..., ge=0)
    total_current: float
    value: float


# =========================================================
# REPORT
# =========================================================

class DashboardReport(BaseModel):
    """Every derived view of one (possibly filtered) dataset."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    totals: TotalsSummary
    cohort_metrics: list[CohortMetrics]
    bin_metrics: list[BinMetrics]
    zero_pledge_metrics: ZeroPledgeMetrics
    status_metrics: list[StatusMetrics]
    insights: AdvancedInsights
    regression: RegressionFit
    forecast: ForecastMetrics
    zip_aggregates: list[ZipAggregate]
