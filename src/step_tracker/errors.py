"""Errors raised around the metric sources and the dashboard."""

from __future__ import annotations


class StepTrackerError(Exception):
    """Base error with a human readable failure reason."""

    failure_reason = "Unable to complete your request at this time."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.failure_reason)


class SharingDeniedError(StepTrackerError):
    """Writing a given quantity type was denied."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.failure_reason = (
            f"You have denied access to upload your {kind} data. "
            "Enable it again in the settings."
        )
        super().__init__(self.failure_reason)


class NoDataError(StepTrackerError):
    """No samples were found for the requested window."""

    failure_reason = "There is no data for one or more health metrics."


class UnableToCompleteRequestError(StepTrackerError):
    """The metric source failed for an unexpected reason."""


class InvalidValueError(StepTrackerError, ValueError):
    """A user supplied value can not be stored."""

    failure_reason = "Must be a valid numeric value."
