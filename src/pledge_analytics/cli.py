"""Command-line interface for running the pledge analytics engine on files.

Provides subcommands: `enrich`, `report` and `zips`. Each command is
implemented as a `cmd_*` function that accepts an argparse namespace.
"""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

from pledge_analytics.config import DASK_SCHEDULERS, get_settings
from pledge_analytics.enrich.rows import enrich
from pledge_analytics.geo.aggregation import (
    HistogramMetric,
    SortDirection,
    ZipSortField,
    aggregate_by_zip,
    attach_locations,
    distance_histogram,
    sort_zip_aggregates,
)
from pledge_analytics.geo.zip_codes import has_zip_data
from pledge_analytics.ingest.files import (
    read_distance_bins_json,
    read_records_csv,
    read_zip_locations_csv,
    write_enriched_csv,
    write_zip_aggregates_csv,
)
from pledge_analytics.logging_config import configure_logging
from pledge_analytics.models import EnrichedRecord
from pledge_analytics.report import build_report

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _load_enriched(args: argparse.Namespace) -> list[EnrichedRecord]:
    """Read the input CSV and enrich it.

    The dataset id defaults to the input file name so that re-running a
    command on the same file reproduces the same household keys.
    """
    records, bad = read_records_csv(args.input)
    if not records:
        raise RuntimeError(f"No valid records in {args.input} ({bad} rejected).")

    dataset_id = args.dataset_id or args.input.name
    return enrich(dataset_id, records)


def _output_path(args: argparse.Namespace, default_name: str) -> Path:
    if args.output is not None:
        return args.output
    return get_settings().report_dir / default_name


# --------------------------------------------------
# ENRICH
# --------------------------------------------------
def cmd_enrich(args: argparse.Namespace) -> None:
    """Write the enriched records of the input file as CSV."""
    enriched = _load_enriched(args)
    write_enriched_csv(enriched, _output_path(args, f"{args.input.stem}_enriched.csv"))


# --------------------------------------------------
# REPORT
# --------------------------------------------------
def cmd_report(args: argparse.Namespace) -> None:
    """Compute every dashboard view and write them as one JSON document."""
    enriched = _load_enriched(args)
    report = build_report(enriched, scheduler=args.scheduler)

    out = _output_path(args, f"{args.input.stem}_report.json")
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    log.info("Report written to %s", out)


# --------------------------------------------------
# ZIPS
# --------------------------------------------------
def cmd_zips(args: argparse.Namespace) -> None:
    """Aggregate by ZIP code, optionally with locations and a distance histogram."""
    enriched = _load_enriched(args)
    if not has_zip_data(enriched):
        log.warning("No ZIP codes in %s. Skipping ZIP aggregation.", args.input)
        return

    aggregates = aggregate_by_zip(enriched)
    if args.locations is not None:
        aggregates = attach_locations(aggregates, read_zip_locations_csv(args.locations))

    aggregates = sort_zip_aggregates(aggregates, args.sort_field, args.direction)
    out = _output_path(args, f"{args.input.stem}_zips.csv")
    write_zip_aggregates_csv(aggregates, out)

    if args.bins is not None:
        histogram = distance_histogram(aggregates, read_distance_bins_json(args.bins), args.metric)
        hist_path = out.with_name(f"{out.stem}_histogram.json")
        hist_path.write_text(
            json.dumps([h.model_dump(mode="json") for h in histogram], indent=2),
            encoding="utf-8",
        )
        log.info("Distance histogram written to %s", hist_path)


# --------------------------------------------------
# CLI
# --------------------------------------------------
def _add_input_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("input", type=Path)
    p.add_argument("--dataset-id", default=None)
    p.add_argument("--output", type=Path, default=None)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    Returns:
        Configured argparse.ArgumentParser with `enrich`, `report` and `zips`
        subcommands.
    """
    p = argparse.ArgumentParser(prog="pledge_analytics")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_enrich = sub.add_parser("enrich")
    _add_input_args(p_enrich)

    p_report = sub.add_parser("report")
    _add_input_args(p_report)
    p_report.add_argument("--scheduler", choices=DASK_SCHEDULERS, default=None)

    p_zips = sub.add_parser("zips")
    _add_input_args(p_zips)
    p_zips.add_argument("--locations", type=Path, default=None)
    p_zips.add_argument("--bins", type=Path, default=None)
    p_zips.add_argument(
        "--metric",
        choices=[m.value for m in HistogramMetric],
        default=HistogramMetric.HOUSEHOLDS.value,
    )
    p_zips.add_argument(
        "--sort-field",
        choices=[f.value for f in ZipSortField],
        default=ZipSortField.HOUSEHOLDS.value,
    )
    p_zips.add_argument(
        "--direction",
        choices=[d.value for d in SortDirection],
        default=SortDirection.DESC.value,
    )

    return p


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    args = build_parser().parse_args(argv)

    load_dotenv()
    s = get_settings()
    configure_logging(s.log_path, s.log_level)

    if args.cmd == "enrich":
        cmd_enrich(args)
    elif args.cmd == "report":
        cmd_report(args)
    elif args.cmd == "zips":
        cmd_zips(args)
    else:
        raise SystemExit(2)


if __name__ == "__main__":
    main()
