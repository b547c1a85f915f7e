"""Tests for the CSV export reader."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import pytest
from dateutil import tz

from step_tracker.calendar_config import CalendarConfig
from step_tracker.model import HealthMetricContext
from step_tracker.sources.csv_export import (
    CsvExportPaths,
    CsvExportSource,
    _find_col,
    _row_to_metric,
    load_csv,
)


def test_find_col_matches_spanish_and_english() -> None:
    cols = ["Fecha", "Pasos", "Body Mass (kg)", "startDate"]
    assert _find_col(cols, [r"\bpasos\b", r"\bstep"]) == "Pasos"
    assert _find_col(cols, [r"body ?mass"]) == "Body Mass (kg)"
    assert _find_col(cols, [r"\bdate\b", r"startdate"]) == "startDate"
    assert _find_col(cols, [r"\bunknown\b"]) is None


def test_row_to_metric_rejects_bad_cells() -> None:
    assert _row_to_metric("", "10") is None
    assert _row_to_metric("2024-05-06", " ") is None
    assert _row_to_metric("not a date", "10") is None
    assert _row_to_metric("2024-05-06", "ten") is None
    assert _row_to_metric("2024-05-06", "inf") is None
    metric = _row_to_metric("2024-05-06", "72.5")
    assert metric is not None
    assert metric.date == datetime(2024, 5, 6)
    assert metric.value == 72.5


def test_load_csv_apple_style_columns(tmp_path: Path) -> None:
    path = tmp_path / "steps.csv"
    path.write_text(
        "startDate,endDate,value\n"
        "2024-05-06 08:00:00 -0400,2024-05-06 09:00:00 -0400,1200\n"
        "2024-05-07 08:00:00 -0400,2024-05-07 09:00:00 -0400,800\n",
        encoding="utf-8",
    )
    out = load_csv(path, HealthMetricContext.STEPS)

    assert [m.value for m in out] == [1200.0, 800.0]
    assert out[0].date == datetime(2024, 5, 6, 12, tzinfo=tz.UTC)


def test_load_csv_skips_unparsable_rows(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    path = tmp_path / "weight.csv"
    path.write_text(
        "Fecha,Peso (kg)\n2024-05-06,80.1\n,79.0\n2024-05-08,bad\n2024-05-09,79.4\n",
        encoding="utf-8",
    )
    with caplog.at_level(logging.WARNING):
        out = load_csv(path, HealthMetricContext.WEIGHT)

    assert [m.value for m in out] == [80.1, 79.4]
    assert "skipped 2" in caplog.text


def test_load_csv_missing_columns(tmp_path: Path) -> None:
    path = tmp_path / "weight.csv"
    path.write_text("foo,bar\n1,2\n", encoding="utf-8")
    with pytest.raises(ValueError, match="missing date or value column"):
        load_csv(path, HealthMetricContext.WEIGHT)


def test_validate_raises_when_root_missing(tmp_path: Path) -> None:
    missing = tmp_path / "noexiste"
    src = CsvExportSource(CsvExportPaths(root=missing))
    with pytest.raises(FileNotFoundError, match=str(missing)):
        src.validate()


def test_source_loads_all_files_sorted(tmp_path: Path) -> None:
    (tmp_path / "steps_2024_b.csv").write_text(
        "date,steps\n2024-05-03,300\n", encoding="utf-8"
    )
    (tmp_path / "steps_2024_a.csv").write_text(
        "date,steps\n2024-05-05,500\n2024-05-01,100\n", encoding="utf-8"
    )
    (tmp_path / "weight.csv").write_text("date,weight\n2024-05-01,80\n", encoding="utf-8")

    src = CsvExportSource(CsvExportPaths(root=tmp_path))
    src.validate()

    assert [p.name for p in src.export_files(HealthMetricContext.STEPS)] == [
        "steps_2024_a.csv",
        "steps_2024_b.csv",
    ]
    steps = src.load(HealthMetricContext.STEPS)
    assert [m.value for m in steps] == [100.0, 300.0, 500.0]
    assert [m.value for m in src.load(HealthMetricContext.WEIGHT)] == [80.0]


def test_source_orders_naive_dates_in_calendar_zone(tmp_path: Path) -> None:
    # 01:00 in New York is 05:00 UTC, after the 03:00 UTC row
    (tmp_path / "steps.csv").write_text(
        "date,steps\n2024-05-06 01:00:00,10\n2024-05-06T03:00:00+00:00,20\n",
        encoding="utf-8",
    )
    new_york = CalendarConfig.from_name("America/New_York")
    src = CsvExportSource(CsvExportPaths(root=tmp_path), new_york)

    assert [m.value for m in src.load(HealthMetricContext.STEPS)] == [20.0, 10.0]

    utc_src = CsvExportSource(CsvExportPaths(root=tmp_path))
    assert [m.value for m in utc_src.load(HealthMetricContext.STEPS)] == [10.0, 20.0]
