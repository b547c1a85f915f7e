"""CLI to import, add, summarize and export step and weight history."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from pathlib import Path

from dateutil import parser as date_parser

from step_tracker.calendar_config import CalendarConfig
from step_tracker.chart_helper import chart_frame
from step_tracker.dashboard import Dashboard
from step_tracker.errors import InvalidValueError, StepTrackerError
from step_tracker.excel_writer import (
    STEPS_FORMAT,
    WEIGHT_FORMAT,
    ChartSheet,
    ExcelLayout,
    write_chart_xlsx,
)
from step_tracker.model import HealthMetric, HealthMetricContext
from step_tracker.sources.csv_export import CsvExportPaths, CsvExportSource, load_csv
from step_tracker.storage import AppConfig, SQLiteStore

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
_CONTEXTS = [c.value for c in HealthMetricContext]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Step count and body weight history by weekday."
    )
    parser.add_argument(
        "--db",
        default=str(Path.home() / ".step_tracker" / "step_tracker.sqlite3"),
        help="SQLite file (default: ~/.step_tracker/step_tracker.sqlite3).",
    )
    parser.add_argument(
        "--tz",
        default=None,
        help="IANA timezone for this run (default: stored configuration).",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import CSV exports.")
    imp.add_argument("--root", help="Folder with steps*.csv and weight*.csv.")
    imp.add_argument("--steps", help="Steps CSV file.")
    imp.add_argument("--weight", help="Weight CSV file.")

    add = sub.add_parser("add", help="Record one value.")
    add.add_argument("metric", choices=_CONTEXTS)
    add.add_argument("value")
    add.add_argument("--date", default=None, help="Day of the value (default: now).")

    summary = sub.add_parser("summary", help="Average and weekday averages.")
    summary.add_argument("metric", choices=_CONTEXTS)

    listing = sub.add_parser("list", help="Daily values, newest first.")
    listing.add_argument("metric", choices=_CONTEXTS)

    export = sub.add_parser("export", help="Write the XLSX report.")
    export.add_argument("--out", default=None, help="Output XLSX path.")

    config = sub.add_parser("config", help="Show or update the configuration.")
    config.add_argument("--timezone", default=None)
    config.add_argument("--first-weekday", type=int, default=None)
    config.add_argument("--export-dir", default=None)

    return parser.parse_args(argv)


def parse_metric_value(text: str) -> float:
    """Parse a user entered value.

    Raises:
        InvalidValueError: If the text is not a number.
    """
    try:
        return float(text.strip())
    except ValueError as exc:
        raise InvalidValueError(f"Not a number: {text!r}") from exc


def open_store(db: str, timezone: str | None) -> SQLiteStore:
    """Open the store, overriding the stored timezone when given."""
    path = Path(db).expanduser()
    store = SQLiteStore(path)
    if timezone is None:
        return store
    first_weekday = store.load_config().first_weekday
    return SQLiteStore(path, CalendarConfig.from_name(timezone, first_weekday))


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Exit code: 0 on success, 1 for missing data or files, 2 for bad input.
    """
    ns = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.INFO, format=_LOG_FORMAT
    )
    try:
        store = open_store(ns.db, ns.tz)
        return _COMMANDS[ns.command](ns, store)
    except InvalidValueError as exc:
        print(f"Invalid value: {exc}")
        return 2
    except ValueError as exc:
        print(f"Invalid input: {exc}")
        return 2
    except FileNotFoundError as exc:
        print(f"Not found: {exc}")
        return 1
    except StepTrackerError as exc:
        print(exc.failure_reason)
        return 1


def _cmd_import(ns: argparse.Namespace, store: SQLiteStore) -> int:
    loaded: dict[HealthMetricContext, list[HealthMetric]] = {}
    if ns.root:
        source = CsvExportSource(
            CsvExportPaths(root=Path(ns.root).expanduser()), store.calendar
        )
        source.validate()
        for kind in HealthMetricContext:
            loaded[kind] = source.load(kind)
    if ns.steps:
        loaded[HealthMetricContext.STEPS] = load_csv(
            _existing(ns.steps), HealthMetricContext.STEPS
        )
    if ns.weight:
        loaded[HealthMetricContext.WEIGHT] = load_csv(
            _existing(ns.weight), HealthMetricContext.WEIGHT
        )
    if not loaded:
        raise ValueError("nothing to import, pass --root, --steps or --weight")

    for kind, metrics in loaded.items():
        added = store.import_metrics(kind, metrics)
        print(f"OK: {kind.title}: {added} new of {len(metrics)} row(s)")
    return 0


def _cmd_add(ns: argparse.Namespace, store: SQLiteStore) -> int:
    context = HealthMetricContext(ns.metric)
    value = parse_metric_value(ns.value)
    if ns.date:
        when = date_parser.parse(ns.date)
    else:
        when = datetime.now(tz=store.calendar.zone)
    dashboard = Dashboard(store, store.calendar)
    dashboard.add_data(context, when, value)
    day = when.date().isoformat()
    print(f"OK: {context.title} {_fmt(value, context)} on {day}")
    return 0


def _cmd_summary(ns: argparse.Namespace, store: SQLiteStore) -> int:
    context = HealthMetricContext(ns.metric)
    dashboard = Dashboard(store, store.calendar)
    dashboard.refresh()
    charts = dashboard.charts(context)
    print(f"{context.title} average: {_fmt(charts.average, context)}")
    label = "Average" if context is HealthMetricContext.STEPS else "Average change"
    print(f"{label} by weekday:")
    for point in charts.weekday:
        title = store.calendar.weekday_title(point.date)
        if context is HealthMetricContext.STEPS:
            shown = _fmt(point.value, context)
        else:
            shown = f"{point.value:+.2f}"
        print(f"  {title:<10} {shown}")
    return 0


def _cmd_list(ns: argparse.Namespace, store: SQLiteStore) -> int:
    context = HealthMetricContext(ns.metric)
    dashboard = Dashboard(store, store.calendar)
    dashboard.refresh()
    for metric in dashboard.list_data(context):
        day = store.calendar.local_date(metric.date)
        print(f"{day.isoformat()}  {_fmt(metric.value, context)}")
    return 0


def _cmd_export(ns: argparse.Namespace, store: SQLiteStore) -> int:
    calendar = store.calendar
    dashboard = Dashboard(store, calendar)
    dashboard.refresh()
    steps = dashboard.charts(HealthMetricContext.STEPS)
    weight = dashboard.charts(HealthMetricContext.WEIGHT)
    sheets = [
        ChartSheet("Steps", chart_frame(steps.line, calendar), STEPS_FORMAT),
        ChartSheet(
            "Steps by weekday", chart_frame(steps.weekday, calendar), STEPS_FORMAT
        ),
        ChartSheet("Weight", chart_frame(weight.line, calendar), WEIGHT_FORMAT),
        ChartSheet(
            "Weight change by weekday",
            chart_frame(weight.weekday, calendar),
            "+0.00;-0.00;0.00",
        ),
    ]

    if ns.out:
        out_path = Path(ns.out).expanduser()
    else:
        export_dir = store.load_config().export_dir or "."
        ts = datetime.now(tz=calendar.zone).strftime("%Y-%m-%d_%H-%M-%S")
        out_path = Path(export_dir).expanduser() / f"step_tracker_{ts}.xlsx"

    write_chart_xlsx(sheets, out_path, ExcelLayout())
    print(f"OK: Output: {out_path}")
    return 0


def _cmd_config(ns: argparse.Namespace, store: SQLiteStore) -> int:
    current = store.load_config()
    updated = AppConfig(
        timezone=ns.timezone if ns.timezone is not None else current.timezone,
        first_weekday=(
            ns.first_weekday if ns.first_weekday is not None else current.first_weekday
        ),
        export_dir=ns.export_dir if ns.export_dir is not None else current.export_dir,
    )
    if updated != current:
        updated.calendar()  # rejects unknown timezones / weekdays
        store.save_config(updated)
        logger.info("Configuration updated")
    print(f"timezone: {updated.timezone}")
    print(f"first_weekday: {updated.first_weekday}")
    print(f"export_dir: {updated.export_dir}")
    return 0


def _existing(raw: str) -> Path:
    path = Path(raw).expanduser()
    if not path.exists():
        raise FileNotFoundError(str(path))
    return path


def _fmt(value: float, context: HealthMetricContext) -> str:
    return f"{value:,.{context.fraction_digits}f}"


_COMMANDS = {
    "import": _cmd_import,
    "add": _cmd_add,
    "summary": _cmd_summary,
    "list": _cmd_list,
    "export": _cmd_export,
    "config": _cmd_config,
}
