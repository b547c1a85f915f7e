"""Base classes for metric sources."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from step_tracker.errors import InvalidValueError
from step_tracker.model import HealthMetric, HealthMetricContext

STEP_WINDOW_DAYS = 28
WEIGHT_WINDOW_DAYS = 28
WEIGHT_DIFF_WINDOW_DAYS = 29


@dataclass(frozen=True)
class SourcePaths:
    """Container for source directories."""

    root: Path


class MetricSource(ABC):
    """Fetch/add capability for step and weight metrics."""

    @abstractmethod
    def fetch_step_count(self, now: datetime | None = None) -> list[HealthMetric]:
        """Daily step totals for the last ``STEP_WINDOW_DAYS`` days."""

    @abstractmethod
    def fetch_weights(self, now: datetime | None = None) -> list[HealthMetric]:
        """Latest weight per day for the last ``WEIGHT_WINDOW_DAYS`` days."""

    @abstractmethod
    def fetch_weight_differentials(
        self, now: datetime | None = None
    ) -> list[HealthMetric]:
        """Latest weight per day for the last ``WEIGHT_DIFF_WINDOW_DAYS`` days."""

    @abstractmethod
    def add_step_data(self, date: datetime, value: float) -> None:
        """Record a step count for ``date``.

        Raises:
            InvalidValueError: If the value is not a valid step count.
        """

    @abstractmethod
    def add_weight_data(self, date: datetime, value: float) -> None:
        """Record a body weight reading for ``date``.

        Raises:
            InvalidValueError: If the value is not a valid weight.
        """


def validate_value(kind: HealthMetricContext, value: float) -> float:
    """Check a value before it is stored.

    Steps must be finite and non-negative, weights finite and positive.

    Raises:
        InvalidValueError: If the value is out of range.
    """
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidValueError(f"Not a number: {value!r}") from exc
    if not math.isfinite(number):
        raise InvalidValueError(f"Not a finite number: {value!r}")
    if kind is HealthMetricContext.STEPS and number < 0:
        raise InvalidValueError(f"Step count can not be negative: {number}")
    if kind is HealthMetricContext.WEIGHT and number <= 0:
        raise InvalidValueError(f"Weight must be positive: {number}")
    return number
