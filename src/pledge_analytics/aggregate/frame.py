"""Build the pandas frame shared by the aggregation routines."""

from __future__ import annotations

from typing import Iterable

import pandas as pd

from pledge_analytics.enrich.classify import age_cohort, pledge_bin
from pledge_analytics.models import EnrichedRecord

RECORD_COLUMNS = [
    "key",
    "age",
    "pledge_current",
    "pledge_prior",
    "zip",
    "status",
    "change_dollar",
    "change_percent",
]

NUMERIC_DTYPES = {
    "age": "int64",
    "pledge_current": "float64",
    "pledge_prior": "float64",
    "change_dollar": "float64",
    "change_percent": "float64",
}


def _bin_label(amount: float) -> str | None:
    bin_ = pledge_bin(amount)
    return bin_.value if bin_ is not None else None


def records_frame(records: Iterable[EnrichedRecord]) -> pd.DataFrame:
    """Return one row per record with derived `age_cohort` and `pledge_bin`.

    Enum fields are stored as their string values. The schema is the same for
    empty input, so callers can group and sum without special cases.
    """
    rows = [r.model_dump(mode="json") for r in records]
    df = pd.DataFrame(rows, columns=RECORD_COLUMNS).astype(NUMERIC_DTYPES)

    df["age_cohort"] = pd.Series(
        [age_cohort(int(a)).value for a in df["age"]], index=df.index, dtype="object"
    )
    df["pledge_bin"] = pd.Series(
        [_bin_label(float(x)) for x in df["pledge_current"]], index=df.index, dtype="object"
    )
    return df
