"""Typed models for health metrics and chart data."""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from dateutil import tz


@dataclass(frozen=True)
class HealthMetric:
    """One timestamped health observation (daily steps or a weight reading)."""

    date: datetime
    value: float


@dataclass(frozen=True)
class DateValueChartData:
    """One (date, value) pair ready to be charted."""

    date: datetime
    value: float


class HealthMetricContext(Enum):
    """Metric shown by a dashboard view."""

    STEPS = "steps"
    WEIGHT = "weight"

    @property
    def title(self) -> str:
        """Display title."""
        return "Steps" if self is HealthMetricContext.STEPS else "Weight"

    @property
    def fraction_digits(self) -> int:
        """Decimals used when listing values."""
        return 0 if self is HealthMetricContext.STEPS else 1


def average(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def mock_metrics(
    days: int = 28,
    now: datetime | None = None,
    low: float = 4_000,
    high: float = 15_000,
    seed: int | None = None,
) -> list[HealthMetric]:
    """Build preview data: one metric per day going back from ``now``.

    Args:
        days: Number of days to generate.
        now: Most recent day (defaults to current UTC time).
        low: Lower bound for random values.
        high: Upper bound for random values.
        seed: Optional seed for reproducible output.

    Returns:
        Metrics ordered newest first, as the preview data always was.
    """
    rng = random.Random(seed)
    start = now if now is not None else datetime.now(tz=tz.UTC)
    return [
        HealthMetric(date=start - timedelta(days=i), value=rng.uniform(low, high))
        for i in range(days)
    ]
