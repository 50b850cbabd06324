"""CSV and JSON readers/writers used by the CLI.

Expected layouts:
- records CSV: `age`, `pledge_current`, `pledge_prior` and optionally `zip`
- locations CSV: `zip` and optionally `latitude`, `longitude`,
  `distance_miles`
- distance bins JSON: a list of ``{"label", "min", "max"}`` objects, where a
  missing or null `max` means unbounded
"""
from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, Iterable

import pandas as pd

from pledge_analytics.geo.zip_codes import normalize_zip
from pledge_analytics.ingest.validate import validate_frame
from pledge_analytics.models import (
    Coordinates,
    DistanceBin,
    EnrichedRecord,
    RawRecord,
    ZipAggregate,
    ZipLocation,
)

log = logging.getLogger(__name__)

RECORD_COLUMNS = ["age", "pledge_current", "pledge_prior", "zip"]


def read_records_csv(path: Path) -> tuple[list[RawRecord], int]:
    """Read raw pledge records from a CSV file.

    Args:
        path: CSV file with the records layout.

    Returns:
        A tuple of (valid records in file order, rejected row count).

    Raises:
        ValueError: if a required column is missing.
    """
    pdf = pd.read_csv(path, dtype={"zip": "string"}, keep_default_na=True)
    missing = [c for c in RECORD_COLUMNS[:3] if c not in pdf.columns]
    if missing:
        raise ValueError(f"{path} is missing required columns: {', '.join(missing)}")

    columns = [c for c in RECORD_COLUMNS if c in pdf.columns]
    pdf = pdf[columns].astype(object).where(pdf[columns].notna(), None)

    records, bad = validate_frame(pdf, RawRecord)
    log.info("Read %d records from %s (%d rejected)", len(records), path, bad)
    return records, bad


def read_zip_locations_csv(path: Path) -> dict[str, ZipLocation]:
    """Read geocoding results keyed by normalized ZIP code."""
    pdf = pd.read_csv(path, dtype={"zip": "string"})
    if "zip" not in pdf.columns:
        raise ValueError(f"{path} is missing required column: zip")

    locations: dict[str, ZipLocation] = {}
    for row in pdf.astype(object).where(pdf.notna(), None).to_dict(orient="records"):
        if row.get("zip") is None:
            continue
        coords = None
        if row.get("latitude") is not None and row.get("longitude") is not None:
            coords = Coordinates(latitude=float(row["latitude"]), longitude=float(row["longitude"]))
        zip_code = normalize_zip(str(row["zip"]))
        distance = row.get("distance_miles")
        locations[zip_code] = ZipLocation(
            zip=zip_code,
            coordinates=coords,
            distance_miles=float(distance) if distance is not None else None,
        )
    return locations


def read_distance_bins_json(path: Path) -> list[DistanceBin]:
    """Read an ordered list of distance bins."""
    data = json.loads(path.read_text(encoding="utf-8"))
    bins: list[DistanceBin] = []
    for item in data:
        upper = item.get("max")
        bins.append(
            DistanceBin(
                label=item["label"],
                min=float(item["min"]),
                max=math.inf if upper is None else float(upper),
            )
        )
    return bins


def _write_csv(rows: list[dict[str, Any]], columns: list[str], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(rows, columns=columns).to_csv(path, index=False)


def write_enriched_csv(records: Iterable[EnrichedRecord], path: Path) -> None:
    """Write enriched records, one row per household."""
    rows = [r.model_dump(mode="json") for r in records]
    _write_csv(rows, list(EnrichedRecord.model_fields), path)
    log.info("Wrote %d enriched records to %s", len(rows), path)


def write_zip_aggregates_csv(aggregates: Iterable[ZipAggregate], path: Path) -> None:
    """Write ZIP aggregates with coordinates flattened to two columns."""
    rows: list[dict[str, Any]] = []
    for agg in aggregates:
        row = agg.model_dump(mode="json", exclude={"coordinates"})
        row["latitude"] = agg.coordinates.latitude if agg.coordinates else None
        row["longitude"] = agg.coordinates.longitude if agg.coordinates else None
        rows.append(row)

    columns = [f for f in ZipAggregate.model_fields if f != "coordinates"] + ["latitude", "longitude"]
    _write_csv(rows, columns, path)
    log.info("Wrote %d ZIP aggregates to %s", len(rows), path)
