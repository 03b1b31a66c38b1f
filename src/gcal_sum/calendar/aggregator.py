"""Sum the durations of calendar events matching a name."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from gcal_sum.calendar.client import CalendarEvent

logger = logging.getLogger(__name__)


def parse_rfc3339(value: str | None) -> datetime:
    """Parse an RFC 3339 timestamp. An explicit UTC offset is required.

    Raises:
        ValueError: If the value is missing, malformed or has no offset.
    """
    if not value:
        raise ValueError("missing timestamp")
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        raise ValueError(f"timestamp {value!r} has no UTC offset")
    return dt


def split_duration(duration: timedelta) -> tuple[int, int]:
    """Split into whole hours and remaining minutes, truncating toward zero."""
    total_minutes = int(duration.total_seconds() / 60)
    hours = int(duration.total_seconds() / 3600)
    minutes = int(math.fmod(total_minutes, 60))
    return hours, minutes


@dataclass(frozen=True)
class MatchedEvent:
    """An event included in the total, with parsed instants."""

    event: CalendarEvent
    start: datetime
    end: datetime

    @property
    def summary(self) -> str:
        return self.event.summary

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass
class AggregationResult:
    """Total duration and matching events in chronological order."""

    total: timedelta = field(default_factory=timedelta)
    matched: list[MatchedEvent] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.matched)

    @property
    def is_empty(self) -> bool:
        return not self.matched


class EventAggregator:
    """Totals the time spent in events named ``target_name``.

    Names match case-insensitively and exactly: "Meeting" matches
    "meeting" but not "Meeting Prep". All-day events never match.
    """

    def __init__(self, target_name: str):
        self.target_name = target_name
        self._key = target_name.casefold()

    def matches(self, event: CalendarEvent) -> bool:
        return not event.is_all_day and event.summary.casefold() == self._key

    def aggregate(self, events: Iterable[CalendarEvent]) -> AggregationResult:
        result = AggregationResult()

        for event in events:
            if not self.matches(event):
                continue

            try:
                start = parse_rfc3339(event.start_time)
                end = parse_rfc3339(event.end_time)
            except ValueError as e:
                logger.warning(f"Skipping event {event.summary!r} ({event.id}): {e}")
                continue

            matched = MatchedEvent(event=event, start=start, end=end)
            result.total += matched.duration
            result.matched.append(matched)

        logger.debug(f"Matched {result.count} events named {self.target_name!r}")
        return result
