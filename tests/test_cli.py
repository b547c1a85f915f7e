"""Tests for CLI entrypoints."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from dateutil import tz

from step_tracker import cli
from step_tracker.calendar_config import CalendarConfig
from step_tracker.errors import InvalidValueError
from step_tracker.excel_writer import ChartSheet


def _run(tmp_path: Path, *args: str) -> int:
    return cli.main(["--db", str(tmp_path / "db.sqlite3"), *args])


def test_parse_args_custom_values() -> None:
    ns = cli.parse_args(["--db", "/tmp/x.sqlite3", "--tz", "UTC", "add", "steps", "10"])
    assert ns.db == "/tmp/x.sqlite3"
    assert ns.tz == "UTC"
    assert ns.command == "add"
    assert ns.metric == "steps"
    assert ns.value == "10"
    assert ns.date is None


def test_parse_metric_value() -> None:
    assert cli.parse_metric_value(" 72.5 ") == 72.5
    with pytest.raises(InvalidValueError):
        cli.parse_metric_value("seventy")


def test_add_then_list(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(tmp_path, "add", "weight", "80.25") == 0
    assert _run(tmp_path, "add", "steps", "1234") == 0
    capsys.readouterr()

    assert _run(tmp_path, "list", "weight") == 0
    out = capsys.readouterr().out
    today = datetime.now(tz=tz.UTC).date().isoformat()
    assert f"{today}  80.2" in out or f"{today}  80.3" in out

    assert _run(tmp_path, "list", "steps") == 0
    assert "1,234" in capsys.readouterr().out


def test_add_invalid_value_exit_code(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _run(tmp_path, "add", "steps", "many") == 2
    assert "Invalid value" in capsys.readouterr().out
    assert _run(tmp_path, "add", "weight", "-3") == 2


def test_summary_without_data(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _run(tmp_path, "summary", "steps") == 1
    assert "no data" in capsys.readouterr().out


def test_unknown_timezone_exit_code(tmp_path: Path) -> None:
    assert _run(tmp_path, "--tz", "Nowhere/City", "list", "steps") == 2


def test_import_and_summary(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    today = datetime.now(tz=tz.UTC).replace(hour=12, minute=0, second=0, microsecond=0)
    days = [today - timedelta(days=i) for i in (14, 7, 1, 0)]
    steps_csv = tmp_path / "steps.csv"
    steps_csv.write_text(
        "date,steps\n"
        + "".join(f"{d.isoformat()},{v}\n" for d, v in zip(days, [100, 300, 50, 70])),
        encoding="utf-8",
    )
    weight_csv = tmp_path / "weight.csv"
    weight_csv.write_text(
        "date,weight\n"
        + "".join(f"{d.isoformat()},{v}\n" for d, v in zip(days, [80, 79, 79, 78])),
        encoding="utf-8",
    )

    args = ["import", "--steps", str(steps_csv), "--weight", str(weight_csv)]
    assert _run(tmp_path, *args) == 0
    out = capsys.readouterr().out
    assert "Steps: 4 new of 4" in out
    assert "Weight: 4 new of 4" in out

    assert _run(tmp_path, "import", "--steps", str(steps_csv)) == 0
    assert "Steps: 0 new of 4" in capsys.readouterr().out

    assert _run(tmp_path, "summary", "steps") == 0
    out = capsys.readouterr().out
    assert "Steps average: 130" in out
    weekday = CalendarConfig().weekday_title(today)
    assert f"{weekday:<10} 157" in out

    assert _run(tmp_path, "summary", "weight") == 0
    assert "Average change by weekday:" in capsys.readouterr().out


def test_import_missing_file(tmp_path: Path) -> None:
    assert _run(tmp_path, "import", "--steps", str(tmp_path / "nope.csv")) == 1


def test_import_requires_a_source(tmp_path: Path) -> None:
    assert _run(tmp_path, "import") == 2


def test_export_writes_report(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    captured: dict[str, Any] = {}

    def _write_chart_xlsx(sheets: list[ChartSheet], out_path: Path, _: Any) -> None:
        captured["sheets"] = sheets
        captured["out_path"] = out_path

    monkeypatch.setattr(cli, "write_chart_xlsx", _write_chart_xlsx)

    assert _run(tmp_path, "add", "steps", "1000") == 0
    assert _run(tmp_path, "config", "--export-dir", str(tmp_path / "reports")) == 0
    assert _run(tmp_path, "export") == 0

    names = [s.name for s in captured["sheets"]]
    assert names == ["Steps", "Steps by weekday", "Weight", "Weight change by weekday"]
    assert len(captured["sheets"][0].frame) == 1
    assert captured["sheets"][2].frame.empty
    out_path = captured["out_path"]
    assert out_path.parent == tmp_path / "reports"
    assert out_path.name.startswith("step_tracker_")


def test_config_show_and_update(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    args = ["config", "--timezone", "Europe/Madrid", "--first-weekday", "2"]
    assert _run(tmp_path, *args) == 0
    capsys.readouterr()

    assert _run(tmp_path, "config") == 0
    out = capsys.readouterr().out
    assert "timezone: Europe/Madrid" in out
    assert "first_weekday: 2" in out

    assert _run(tmp_path, "config", "--first-weekday", "9") == 2


def test_add_same_value_twice_lists_the_sum(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    today = datetime.now(tz=tz.UTC).date().isoformat()
    assert _run(tmp_path, "add", "steps", "500", "--date", today) == 0
    assert _run(tmp_path, "add", "steps", "500", "--date", today) == 0
    capsys.readouterr()

    assert _run(tmp_path, "list", "steps") == 0
    assert f"{today}  1,000" in capsys.readouterr().out
