"""Explicit calendar/timezone configuration for weekday and day math."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, tzinfo

from dateutil import tz

_WEEKDAY_TITLES: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
_MONTH_TITLES: tuple[str, ...] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


@dataclass(frozen=True)
class CalendarConfig:
    """Timezone and weekday numbering used by every calendar-dependent function.

    Weekdays are numbered 1..7 in Gregorian order starting on Sunday, shifted
    so that ``first_weekday`` maps to 1.
    """

    zone: tzinfo = field(default_factory=tz.tzutc)
    first_weekday: int = 1

    def __post_init__(self) -> None:
        if not 1 <= self.first_weekday <= 7:
            raise ValueError(f"first_weekday must be 1..7, got {self.first_weekday}")

    @classmethod
    def from_name(cls, name: str, first_weekday: int = 1) -> CalendarConfig:
        """Build a config from an IANA timezone name.

        Raises:
            ValueError: If the timezone is unknown.
        """
        zone = tz.gettz(name)
        if zone is None:
            raise ValueError(f"Unknown timezone: {name!r}")
        return cls(zone=zone, first_weekday=first_weekday)

    def localize(self, dt: datetime) -> datetime:
        """Express ``dt`` in this calendar's timezone (naive means local)."""
        if dt.tzinfo is None:
            return dt.replace(tzinfo=self.zone)
        return dt.astimezone(self.zone)

    def local_date(self, dt: datetime) -> date:
        """Calendar day of ``dt``."""
        return self.localize(dt).date()

    def start_of_day(self, dt: datetime) -> datetime:
        """Local midnight of the day containing ``dt``."""
        return datetime.combine(self.local_date(dt), time.min, tzinfo=self.zone)

    def weekday_int(self, dt: datetime) -> int:
        """Weekday number 1..7 (Sunday is 1 with the default numbering)."""
        # isoweekday: Monday=1..Sunday=7 -> Gregorian Sunday=1..Saturday=7
        gregorian = self.localize(dt).isoweekday() % 7 + 1
        return (gregorian - self.first_weekday) % 7 + 1

    def is_same_day(self, a: datetime, b: datetime) -> bool:
        """True when both instants fall on the same calendar day."""
        return self.local_date(a) == self.local_date(b)

    def weekday_title(self, dt: datetime) -> str:
        """Full weekday name, e.g. ``Monday``."""
        return _WEEKDAY_TITLES[self.localize(dt).weekday()]

    def accessibility_date(self, dt: datetime) -> str:
        """Month and day, e.g. ``May 2``."""
        local = self.localize(dt)
        return f"{_MONTH_TITLES[local.month - 1]} {local.day}"
