"""Configuration helpers and Settings container.

This module provides a small `Settings` dataclass and `get_settings` which
reads optional environment variables (with a check that the log level and Dask
scheduler are recognised).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import logging
import os

from dotenv import load_dotenv

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

DASK_SCHEDULERS = ("threads", "sync", "processes")


@dataclass(frozen=True)
class Settings:
    """Container for configuration read from the environment.

    Attributes:
        report_dir: Directory where CLI outputs are written by default.
        log_path: Log file written in addition to stdout.
        log_level: Logging level name (e.g. ``INFO``).
        dask_scheduler: Dask scheduler used when building reports.
    """
    report_dir: Path
    log_path: Path
    log_level: str
    dask_scheduler: str


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if `PLEDGE_LOG_LEVEL` or `PLEDGE_DASK_SCHEDULER` holds an
            unknown value.
    """
    report_dir = Path(os.getenv("PLEDGE_REPORT_DIR", "reports"))
    log_path = Path(os.getenv("PLEDGE_LOG_PATH", "logs/pledge_analytics.log"))
    log_level = os.getenv("PLEDGE_LOG_LEVEL", "INFO").strip().upper()
    dask_scheduler = os.getenv("PLEDGE_DASK_SCHEDULER", "threads").strip().lower()

    if not isinstance(logging.getLevelName(log_level), int):
        raise RuntimeError(
            f"PLEDGE_LOG_LEVEL={log_level!r} is not a logging level "
            "(example: 'INFO' or 'DEBUG')."
        )

    if dask_scheduler not in DASK_SCHEDULERS:
        raise RuntimeError(
            f"PLEDGE_DASK_SCHEDULER must be one of {', '.join(DASK_SCHEDULERS)}; "
            f"got {dask_scheduler!r}."
        )

    return Settings(
        report_dir=report_dir,
        log_path=log_path,
        log_level=log_level,
        dask_scheduler=dask_scheduler,
    )
