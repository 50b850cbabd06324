"""Row validation for imported tables.

Rows are validated one by one against a Pydantic model; rows that fail are
counted and skipped rather than aborting the import.
"""
from __future__ import annotations

import logging
import math
from typing import Any, TypeVar

import pandas as pd
from pydantic import BaseModel, ValidationError

log = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _clean_value(value: Any) -> Any:
    """Map pandas missing values (NaN) to ``None``."""
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def validate_frame(pdf: pd.DataFrame, model: type[M]) -> tuple[list[M], int]:
    """Validate every row of `pdf` with `model`.

    Args:
        pdf: Table whose column names match the model fields.
        model: Pydantic model class to validate against.

    Returns:
        A tuple of (list_of_validated_models, bad_count).
    """
    good: list[M] = []
    bad = 0

    for i, rec in enumerate(pdf.to_dict(orient="records")):
        rec = {k: _clean_value(v) for k, v in rec.items()}
        try:
            good.append(model.model_validate(rec))
        except ValidationError as exc:
            bad += 1
            log.debug("Row %d rejected: %s", i, exc.errors())

    if bad:
        log.warning("Rejected %d of %d rows as invalid %s", bad, len(pdf), model.__name__)
    return good, bad
