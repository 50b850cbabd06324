from __future__ import annotations

import pytest

from pledge_analytics.aggregate.metrics import (
    bin_metrics,
    cohort_metrics,
    status_metrics,
    totals,
    zero_pledge_metrics,
)
from pledge_analytics.models import AgeCohort, PledgeBin, PledgeStatus


def test_totals_on_sample(sample_records) -> None:
    t = totals(sample_records)
    assert t.households == 4
    assert t.total_current == 3800
    assert t.total_prior == 3500
    assert t.delta_dollar == 300
    assert t.delta_percent == pytest.approx(300 / 3500)
    assert (t.renewed, t.current_only, t.prior_only, t.no_pledge_both) == (1, 1, 1, 1)


def test_totals_empty() -> None:
    t = totals([])
    assert t.households == 0
    assert t.total_current == 0
    assert t.total_prior == 0
    assert t.delta_dollar == 0
    assert t.delta_percent is None
    assert (t.renewed, t.current_only, t.prior_only, t.no_pledge_both) == (0, 0, 0, 0)


def test_totals_delta_percent_none_without_prior(make_records) -> None:
    t = totals(make_records([(30, 1000, 0), (40, 500, 0)]))
    assert t.delta_dollar == 1500
    assert t.delta_percent is None


def test_cohort_metrics_cover_every_cohort_when_empty() -> None:
    metrics = cohort_metrics([])
    assert [m.cohort for m in metrics] == list(AgeCohort)
    for m in metrics:
        assert m.households == 0
        assert m.average_current == 0
        assert m.median_current == 0
        assert m.renewal_rate == 0


def test_cohort_metrics_per_cohort(make_records) -> None:
    records = make_records([
        (25, 1000, 800),
        (35, 1500, 0),
        (45, 2000, 1800),
        (55, 2500, 2500),
        (75, 3000, 2800),
    ])
    by_cohort = {m.cohort: m for m in cohort_metrics(records)}

    under40 = by_cohort[AgeCohort.UNDER_40]
    assert under40.households == 2
    assert under40.total_current == 2500
    assert under40.total_prior == 800
    assert under40.average_current == 1250

    assert by_cohort[AgeCohort.AGE_40_49].total_current == 2000
    assert by_cohort[AgeCohort.AGE_50_64].total_current == 2500
    assert by_cohort[AgeCohort.AGE_65_PLUS].households == 1


def test_cohort_median_even_count(make_records) -> None:
    records = make_records([(30, 1000, 0), (35, 2000, 0), (37, 3000, 0), (38, 4000, 0)])
    under40 = cohort_metrics(records)[0]
    assert under40.median_current == 2500


def test_cohort_average_ignores_zero_pledges(make_records) -> None:
    records = make_records([(30, 1000, 0), (35, 3000, 0), (38, 0, 500)])
    under40 = cohort_metrics(records)[0]
    assert under40.households == 3
    assert under40.average_current == 2000
    assert under40.median_current == 2000


def test_cohort_renewal_rate_uses_prior_pledgers(make_records) -> None:
    records = make_records([(30, 2000, 1500), (35, 1800, 1600), (38, 0, 1000), (39, 900, 0)])
    under40 = cohort_metrics(records)[0]
    assert under40.renewal_rate == pytest.approx(2 / 3)


def test_cohort_change_directions(make_records) -> None:
    records = make_records([(30, 2000, 1500), (35, 1500, 2000), (38, 1800, 1800), (39, 2500, 0)])
    under40 = cohort_metrics(records)[0]
    assert (under40.increased, under40.decreased, under40.no_change) == (1, 1, 1)


def test_bin_metrics(make_records) -> None:
    records = make_records([
        (30, 1000, 0),
        (31, 1799, 0),
        (32, 1800, 0),
        (33, 5400, 0),
        (34, 8000, 0),
        (35, 0, 900),
    ])
    by_bin = {m.bin: m for m in bin_metrics(records)}

    assert [m.bin for m in bin_metrics(records)] == list(PledgeBin)
    assert by_bin[PledgeBin.BIN_1_1799].households == 2
    assert by_bin[PledgeBin.BIN_1_1799].total == 2799
    assert by_bin[PledgeBin.BIN_1_1799].average == pytest.approx(1399.5)
    assert by_bin[PledgeBin.BIN_1800_2499].households == 1
    assert by_bin[PledgeBin.BIN_2500_3599].households == 0
    assert by_bin[PledgeBin.BIN_2500_3599].average == 0
    assert by_bin[PledgeBin.BIN_5400_PLUS].households == 2
    assert by_bin[PledgeBin.BIN_5400_PLUS].median == 6700


def test_bin_metrics_empty() -> None:
    metrics = bin_metrics([])
    assert len(metrics) == 5
    assert all(m.households == 0 and m.total == 0 for m in metrics)


def test_zero_pledge_metrics(make_records) -> None:
    records = make_records([(30, 0, 0), (40, 0, 1500), (50, 1000, 0)])
    z = zero_pledge_metrics(records)
    assert z.label == "$0"
    assert z.households == 2
    assert z.total == 0


def test_bins_plus_zero_reconcile_with_totals(make_records) -> None:
    records = make_records([
        (30, 0, 0),
        (40, 1200, 1000),
        (45, 2400, 0),
        (50, 3000, 3500),
        (55, 4100, 4000),
        (60, 9000, 7000),
        (70, 0, 2000),
    ])
    binned = sum(m.total for m in bin_metrics(records))
    assert binned + zero_pledge_metrics(records).total == totals(records).total_current


def test_status_metrics(sample_records) -> None:
    by_status = {m.status: m for m in status_metrics(sample_records)}
    assert [m.status for m in status_metrics(sample_records)] == list(PledgeStatus)
    assert by_status[PledgeStatus.RENEWED].total_current == 2000
    assert by_status[PledgeStatus.RENEWED].total_prior == 1500
    assert by_status[PledgeStatus.PRIOR_ONLY].total_prior == 2000
    assert by_status[PledgeStatus.NO_PLEDGE_BOTH].households == 1


def test_status_metrics_empty() -> None:
    assert all(m.households == 0 for m in status_metrics([]))
