"""Status, age cohort and pledge bin classification rules.

Every function here is pure and total over non-negative inputs. Cohorts and
bins are half-open ranges, lower bound inclusive.
"""

from __future__ import annotations

import math

from pledge_analytics.models import AgeCohort, ChangeDirection, PledgeBin, PledgeStatus

AGE_COHORT_RANGES: tuple[tuple[AgeCohort, float, float], ...] = (
    (AgeCohort.UNDER_40, 0, 40),
    (AgeCohort.AGE_40_49, 40, 50),
    (AgeCohort.AGE_50_64, 50, 65),
    (AgeCohort.AGE_65_PLUS, 65, math.inf),
)

PLEDGE_BIN_RANGES: tuple[tuple[PledgeBin, float, float], ...] = (
    (PledgeBin.BIN_1_1799, 1, 1800),
    (PledgeBin.BIN_1800_2499, 1800, 2500),
    (PledgeBin.BIN_2500_3599, 2500, 3600),
    (PledgeBin.BIN_3600_5399, 3600, 5400),
    (PledgeBin.BIN_5400_PLUS, 5400, math.inf),
)


def classify_status(pledge_current: float, pledge_prior: float) -> PledgeStatus:
    """Classify a household from the signs of its two pledges."""
    has_current = pledge_current > 0
    has_prior = pledge_prior > 0

    if has_current and has_prior:
        return PledgeStatus.RENEWED
    if has_current:
        return PledgeStatus.CURRENT_ONLY
    if has_prior:
        return PledgeStatus.PRIOR_ONLY
    return PledgeStatus.NO_PLEDGE_BOTH


def change_dollar(pledge_current: float, pledge_prior: float) -> float:
    return pledge_current - pledge_prior


def change_percent(pledge_current: float, pledge_prior: float) -> float | None:
    """Return the relative change, or ``None`` when there is no prior pledge."""
    if pledge_prior == 0:
        return None
    return (pledge_current - pledge_prior) / pledge_prior


def change_direction(change: float, status: PledgeStatus) -> ChangeDirection | None:
    """Direction of change for renewed households; ``None`` for everyone else."""
    if status is not PledgeStatus.RENEWED:
        return None
    if change > 0:
        return ChangeDirection.INCREASED
    if change < 0:
        return ChangeDirection.DECREASED
    return ChangeDirection.NO_CHANGE


def age_cohort(age: int) -> AgeCohort:
    """Return the cohort whose range contains `age`."""
    for cohort, _, upper in AGE_COHORT_RANGES:
        if age < upper:
            return cohort
    return AgeCohort.AGE_65_PLUS


def pledge_bin(amount: float) -> PledgeBin | None:
    """Return the bin for a positive amount, ``None`` for zero.

    Args:
        amount: Current pledge amount.

    Returns:
        The matching `PledgeBin`, or ``None`` when `amount <= 0` (or when a
        fractional amount falls below the first bin).
    """
    if amount <= 0:
        return None

    for bin_, lower, upper in PLEDGE_BIN_RANGES:
        if lower <= amount < upper:
            return bin_
    return None
