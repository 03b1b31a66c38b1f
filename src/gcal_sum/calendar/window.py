"""Half-open time windows for event queries."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo

from gcal_sum.calendar.exceptions import DateParseError, InvalidWindowError

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MONTH_PATTERN = re.compile(r"^\d{4}-\d{2}$")


def parse_date(value: str, role: str = "date") -> date:
    """Parse a ``YYYY-MM-DD`` string.

    Raises:
        DateParseError: Naming ``role`` if the string is not a valid date.
    """
    if not DATE_PATTERN.match(value or ""):
        raise DateParseError(role, value, "YYYY-MM-DD")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise DateParseError(role, value, "YYYY-MM-DD") from None


def parse_month(value: str, role: str = "month") -> date:
    """Parse a ``YYYY-MM`` string into the first day of that month."""
    if not MONTH_PATTERN.match(value or ""):
        raise DateParseError(role, value, "YYYY-MM")
    try:
        return datetime.strptime(value, "%Y-%m").date()
    except ValueError:
        raise DateParseError(role, value, "YYYY-MM") from None


def local_midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


@dataclass(frozen=True)
class TimeWindow:
    """Instants ``start <= t < end`` in a reference timezone."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise InvalidWindowError("Time window bounds must be timezone-aware")
        if self.end <= self.start:
            raise InvalidWindowError(
                f"Window end {self.end.isoformat()} is not after start {self.start.isoformat()}"
            )

    @classmethod
    def from_dates(cls, start: str, end: str, tz: tzinfo) -> TimeWindow:
        """Window covering whole days ``start`` through ``end`` inclusive."""
        start_day = parse_date(start, "start date")
        end_day = parse_date(end, "end date")
        if end_day < start_day:
            raise InvalidWindowError(f"End date {end} is before start date {start}")

        return cls(
            start=local_midnight(start_day, tz),
            end=local_midnight(end_day + timedelta(days=1), tz),
        )

    @classmethod
    def from_month(cls, month: str, tz: tzinfo) -> TimeWindow:
        """Window from the first day of ``month`` to the first day of the next."""
        first = parse_month(month)
        if first.month == 12:
            following = first.replace(year=first.year + 1, month=1)
        else:
            following = first.replace(month=first.month + 1)

        return cls(start=local_midnight(first, tz), end=local_midnight(following, tz))

    @property
    def first_day(self) -> date:
        return self.start.date()

    @property
    def last_day(self) -> date:
        """Last calendar day included in the window."""
        return (self.end - timedelta(microseconds=1)).date()
