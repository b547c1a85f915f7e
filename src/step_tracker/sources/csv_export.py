"""Reading of step and weight CSV exports."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path

import pandas as pd
from dateutil import parser

from step_tracker.calendar_config import CalendarConfig
from step_tracker.model import HealthMetric, HealthMetricContext
from step_tracker.sources.base import SourcePaths

logger = logging.getLogger(__name__)

_DATE_PATTERNS: list[str] = [
    r"\bdate\b",
    r"startdate",
    r"\bfecha\b",
    r"timestamp",
    r"\btime\b",
]
_VALUE_PATTERNS: dict[HealthMetricContext, list[str]] = {
    HealthMetricContext.STEPS: [r"\bvalue\b", r"\bsteps?\b", r"\bpasos\b", r"\bcount\b"],
    HealthMetricContext.WEIGHT: [
        r"\bvalue\b",
        r"\bweight\b",
        r"body ?mass",
        r"\bpeso\b",
        r"\bkg\b",
    ],
}


@dataclass(frozen=True)
class CsvExportPaths(SourcePaths):
    """Paths for CSV exports."""

    # root: folder containing steps*.csv and weight*.csv


class CsvExportSource:
    """CSV export reader for steps and weight history."""

    def __init__(
        self, paths: CsvExportPaths, calendar: CalendarConfig | None = None
    ) -> None:
        """Create a CSV export reader.

        Args:
            paths: Folder configuration.
            calendar: Zone that dates without an offset are read in; UTC
                when omitted.
        """
        self._paths = paths
        self._calendar = calendar or CalendarConfig()

    def validate(self) -> None:
        """Validate that the export directory exists."""
        if not self._paths.root.exists():
            raise FileNotFoundError(str(self._paths.root))

    def export_files(self, kind: HealthMetricContext) -> list[Path]:
        """Return ``<kind>*.csv`` files sorted by name."""
        return sorted(self._paths.root.glob(f"{kind.value}*.csv"))

    def load(self, kind: HealthMetricContext) -> list[HealthMetric]:
        """Load every export file of ``kind`` as metrics sorted by date."""
        out: list[HealthMetric] = []
        for path in self.export_files(kind):
            out.extend(load_csv(path, kind))
        out.sort(key=lambda m: self._calendar.localize(m.date))
        return out


def load_csv(path: Path, kind: HealthMetricContext) -> list[HealthMetric]:
    """Parse one CSV export.

    Args:
        path: CSV file with a date column and a value column.
        kind: Metric stored in the file, used to find the value column.

    Returns:
        Parsed metrics in file order.

    Raises:
        ValueError: If the date or value column can not be found.
    """
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df = df.rename(columns={c: c.strip() for c in df.columns})
    cols = list(df.columns)

    date_col = _find_col(cols, _DATE_PATTERNS)
    value_col = _find_col([c for c in cols if c != date_col], _VALUE_PATTERNS[kind])
    if date_col is None or value_col is None:
        raise ValueError(f"{path.name}: missing date or value column in {cols}")

    out: list[HealthMetric] = []
    skipped = 0
    for raw_date, raw_value in zip(df[date_col], df[value_col]):
        metric = _row_to_metric(raw_date, raw_value)
        if metric is None:
            skipped += 1
            continue
        out.append(metric)

    if skipped:
        logger.warning("%s: skipped %d unparsable row(s)", path.name, skipped)
    logger.debug("%s: loaded %d %s row(s)", path.name, len(out), kind.value)
    return out


def _find_col(columns: list[str], patterns: list[str]) -> str | None:
    for pat in patterns:
        rx = re.compile(pat, re.IGNORECASE)
        for c in columns:
            if rx.search(c):
                return c
    return None


def _row_to_metric(raw_date: str, raw_value: str) -> HealthMetric | None:
    """Convert a CSV row to a metric; None when either cell is unusable."""
    if not raw_date.strip() or not raw_value.strip():
        return None
    try:
        when = parser.parse(raw_date)
        value = float(raw_value)
    except (ValueError, OverflowError):
        return None
    if not math.isfinite(value):
        return None
    return HealthMetric(date=when, value=value)
