"""Dashboard model: fetched metrics composed into chart series per context."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar

from step_tracker.calendar_config import CalendarConfig
from step_tracker.chart_helper import (
    average_daily_weight_diffs,
    average_weekday_count,
    convert,
    parse_selected_data,
)
from step_tracker.errors import (
    NoDataError,
    StepTrackerError,
    UnableToCompleteRequestError,
)
from step_tracker.model import (
    DateValueChartData,
    HealthMetric,
    HealthMetricContext,
    average,
)
from step_tracker.sources.base import MetricSource

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


@dataclass(frozen=True)
class DashboardCharts:
    """Chart series for one context."""

    context: HealthMetricContext
    line: list[DateValueChartData]
    weekday: list[DateValueChartData]
    average: float


class Dashboard:
    """Holds the latest fetched metrics and derives chart data from them."""

    def __init__(self, source: MetricSource, calendar: CalendarConfig) -> None:
        self._source = source
        self._calendar = calendar
        self.step_data: list[HealthMetric] = []
        self.weight_data: list[HealthMetric] = []
        self.weight_diff_data: list[HealthMetric] = []

    @property
    def calendar(self) -> CalendarConfig:
        return self._calendar

    def refresh(self, now: datetime | None = None) -> None:
        """Fetch steps, weights and weight differentials.

        Raises:
            NoDataError: If every series came back empty.
            UnableToCompleteRequestError: If the source failed unexpectedly.

        On failure the previously fetched series are left untouched.
        """
        steps = self._call(self._source.fetch_step_count, now)
        weights = self._call(self._source.fetch_weights, now)
        diffs = self._call(self._source.fetch_weight_differentials, now)
        self.step_data, self.weight_data, self.weight_diff_data = steps, weights, diffs
        logger.debug(
            "Fetched %d step, %d weight, %d weight diff point(s)",
            len(self.step_data),
            len(self.weight_data),
            len(self.weight_diff_data),
        )
        if not (self.step_data or self.weight_data or self.weight_diff_data):
            raise NoDataError()

    def list_data(self, context: HealthMetricContext) -> list[HealthMetric]:
        """Metrics for ``context``, newest first."""
        return list(reversed(self._series(context)))

    def charts(self, context: HealthMetricContext) -> DashboardCharts:
        """Line, weekday and average data for ``context``."""
        series = self._series(context)
        if context is HealthMetricContext.STEPS:
            weekday = average_weekday_count(series, self._calendar)
        else:
            weekday = average_daily_weight_diffs(
                self.weight_diff_data, self._calendar
            )
        return DashboardCharts(
            context=context,
            line=convert(series),
            weekday=weekday,
            average=average([m.value for m in series]),
        )

    def selected(
        self, context: HealthMetricContext, selected_date: datetime | None
    ) -> DateValueChartData | None:
        """Chart point of ``context`` on the day of ``selected_date``."""
        return parse_selected_data(
            convert(self._series(context)), selected_date, self._calendar
        )

    def add_data(
        self,
        context: HealthMetricContext,
        date: datetime,
        value: float,
        now: datetime | None = None,
    ) -> None:
        """Store a new value, then refetch the series it affects."""
        if context is HealthMetricContext.STEPS:
            self._call(self._source.add_step_data, date, value)
            self.step_data = self._call(self._source.fetch_step_count, now)
        else:
            self._call(self._source.add_weight_data, date, value)
            self.weight_data = self._call(self._source.fetch_weights, now)
            self.weight_diff_data = self._call(
                self._source.fetch_weight_differentials, now
            )

    def _series(self, context: HealthMetricContext) -> list[HealthMetric]:
        if context is HealthMetricContext.STEPS:
            return self.step_data
        return self.weight_data

    def _call(self, func: Callable[..., _T], *args: object) -> _T:
        try:
            return func(*args)
        except StepTrackerError:
            raise
        except Exception as exc:
            logger.exception(
                "Metric source call %s failed", getattr(func, "__name__", func)
            )
            raise UnableToCompleteRequestError() from exc
