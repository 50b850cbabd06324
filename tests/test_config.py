from __future__ import annotations

from pathlib import Path

import pytest

from pledge_analytics.config import get_settings


def test_get_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PLEDGE_REPORT_DIR", "PLEDGE_LOG_PATH", "PLEDGE_LOG_LEVEL", "PLEDGE_DASK_SCHEDULER"):
        monkeypatch.delenv(name, raising=False)

    s = get_settings()
    assert s.report_dir == Path("reports")
    assert s.log_path == Path("logs/pledge_analytics.log")
    assert s.log_level == "INFO"
    assert s.dask_scheduler == "threads"


def test_get_settings_reads_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PLEDGE_REPORT_DIR", str(tmp_path))
    monkeypatch.setenv("PLEDGE_LOG_LEVEL", "debug")
    monkeypatch.setenv("PLEDGE_DASK_SCHEDULER", "Sync")

    s = get_settings()
    assert s.report_dir == tmp_path
    assert s.log_level == "DEBUG"
    assert s.dask_scheduler == "sync"


def test_get_settings_rejects_unknown_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLEDGE_LOG_LEVEL", "LOUD")
    with pytest.raises(RuntimeError):
        get_settings()


def test_get_settings_rejects_unknown_scheduler(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLEDGE_DASK_SCHEDULER", "cluster")
    with pytest.raises(RuntimeError):
        get_settings()
