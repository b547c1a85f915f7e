"""Chart math: weekday averages, daily weight differences and lookups."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from itertools import groupby

import pandas as pd

from step_tracker.calendar_config import CalendarConfig
from step_tracker.model import DateValueChartData, HealthMetric

CHART_COLUMNS: list[str] = ["date", "weekday", "weekday_title", "value"]


def convert(data: Sequence[HealthMetric]) -> list[DateValueChartData]:
    """Project health metrics onto chart points, keeping order and values."""
    return [DateValueChartData(date=m.date, value=m.value) for m in data]


def parse_selected_data(
    data: Sequence[DateValueChartData],
    selected_date: datetime | None,
    calendar: CalendarConfig,
) -> DateValueChartData | None:
    """Return the first chart point on the same calendar day as ``selected_date``.

    Args:
        data: Chart points, searched in order.
        selected_date: Day to look for; ``None`` means nothing is selected.
        calendar: Calendar deciding what "same day" means.

    Returns:
        The matching chart point, or None.
    """
    if selected_date is None:
        return None
    for point in data:
        if calendar.is_same_day(selected_date, point.date):
            return point
    return None


def average_weekday_count(
    metric: Sequence[HealthMetric], calendar: CalendarConfig
) -> list[DateValueChartData]:
    """Average metric values grouped by weekday.

    The input is copied and stable-sorted by weekday number, then each run of
    equal weekdays becomes one chart point. The point's date is the first
    element of its run, which keeps input order within a weekday rather than
    picking the earliest date.

    Args:
        metric: Health metrics in any order.
        calendar: Calendar used for weekday numbering.

    Returns:
        At most seven chart points ordered by weekday number.
    """
    return _weekday_averages(((m.date, m.value) for m in metric), calendar)


def average_daily_weight_diffs(
    weights: Sequence[HealthMetric], calendar: CalendarConfig
) -> list[DateValueChartData]:
    """Average day-over-day weight differences grouped by weekday.

    Each adjacent pair contributes ``later.value - earlier.value`` under the
    weekday of the later date. Needs at least two weights, otherwise returns
    an empty list.

    Args:
        weights: Weight metrics in chronological order.
        calendar: Calendar used for weekday numbering.

    Returns:
        At most seven chart points ordered by weekday number.
    """
    if len(weights) < 2:
        return []
    diffs = [
        (later.date, later.value - earlier.value)
        for earlier, later in zip(weights, weights[1:])
    ]
    return _weekday_averages(diffs, calendar)


def _weekday_averages(
    rows: Iterable[tuple[datetime, float]], calendar: CalendarConfig
) -> list[DateValueChartData]:
    def weekday(row: tuple[datetime, float]) -> int:
        return calendar.weekday_int(row[0])

    out: list[DateValueChartData] = []
    for _, run in groupby(sorted(rows, key=weekday), key=weekday):
        group = list(run)
        total = sum(value for _, value in group)
        out.append(DateValueChartData(date=group[0][0], value=total / len(group)))
    return out


def chart_frame(
    points: Sequence[DateValueChartData], calendar: CalendarConfig
) -> pd.DataFrame:
    """Convert chart points to a DataFrame with weekday columns, input order."""
    rows = [
        {
            "date": calendar.localize(p.date),
            "weekday": calendar.weekday_int(p.date),
            "weekday_title": calendar.weekday_title(p.date),
            "value": p.value,
        }
        for p in points
    ]
    if not rows:
        return pd.DataFrame(columns=CHART_COLUMNS)
    return pd.DataFrame(rows, columns=CHART_COLUMNS)
