"""US ZIP code normalisation and validation."""

from __future__ import annotations

import re
from typing import Iterable

from pledge_analytics.models import RawRecord

ZIP5_RE = re.compile(r"^\d{5}$")
_ZIP_PREFIX_RE = re.compile(r"^(\d{5})")
_STRIPPED_ZIP_RE = re.compile(r"^\d{4}$")


def is_valid_zip(value: str) -> bool:
    return bool(ZIP5_RE.match(value))


def normalize_zip(raw: str) -> str:
    """Return the 5-digit form of a ZIP code.

    Whitespace is trimmed, ZIP+4 codes (``"94526-1234"``) are cut to their
    5-digit prefix and 4-digit codes get back the leading zero that
    spreadsheets strip (``"8550"`` -> ``"08550"``). Anything else is returned
    trimmed but otherwise unchanged.
    """
    trimmed = raw.strip()

    if _STRIPPED_ZIP_RE.match(trimmed):
        return "0" + trimmed

    m = _ZIP_PREFIX_RE.match(trimmed)
    return m.group(1) if m else trimmed


def has_zip(record: RawRecord) -> bool:
    return record.zip is not None and record.zip.strip() != ""


def has_zip_data(records: Iterable[RawRecord]) -> bool:
    """True when at least one record carries a non-empty ZIP code."""
    return any(has_zip(r) for r in records)
