"""Google Calendar event listing and duration aggregation.

Usage:
    from gcal_sum.calendar import CalendarClient, EventAggregator, TimeWindow

    window = TimeWindow.from_month("2024-03", tz)
    events = CalendarClient(token_manager).list_events("primary", window)
    result = EventAggregator("Standup").aggregate(events)
"""

from __future__ import annotations

from gcal_sum.calendar.aggregator import (
    AggregationResult,
    EventAggregator,
    MatchedEvent,
    split_duration,
)
from gcal_sum.calendar.client import Calendar, CalendarClient, CalendarEvent
from gcal_sum.calendar.exceptions import (
    CalendarAPIError,
    CalendarError,
    DateParseError,
    InvalidWindowError,
)
from gcal_sum.calendar.window import TimeWindow

__all__ = [
    "AggregationResult",
    "Calendar",
    "CalendarClient",
    "CalendarEvent",
    "EventAggregator",
    "MatchedEvent",
    "TimeWindow",
    "split_duration",
    "CalendarError",
    "CalendarAPIError",
    "DateParseError",
    "InvalidWindowError",
]
