"""Human-readable output for the CLI."""

from __future__ import annotations

from datetime import datetime, tzinfo

from gcal_sum.calendar import AggregationResult, Calendar, TimeWindow, split_duration

DATE_FORMAT = "%Y/%m/%d"
DATETIME_FORMAT = "%Y/%m/%d %H:%M"

NO_MATCHES_MESSAGE = "No matching events found."


def format_calendars(calendars: list[Calendar]) -> str:
    lines = ["Available calendars:"]
    for i, calendar in enumerate(calendars, 1):
        mark = " [primary]" if calendar.primary else ""
        lines.append(f"{i}. {calendar.summary} (ID: {calendar.id}){mark}")
    return "\n".join(lines)


def format_period(window: TimeWindow) -> str:
    return (
        f"Search period: {window.first_day.strftime(DATE_FORMAT)} "
        f"to {window.last_day.strftime(DATE_FORMAT)}"
    )


def _local(dt: datetime, tz: tzinfo) -> str:
    return dt.astimezone(tz).strftime(DATETIME_FORMAT)


def format_report(name: str, result: AggregationResult, tz: tzinfo) -> str:
    """Format the total and the matched events.

    Event times are shown in ``tz``.
    """
    hours, minutes = split_duration(result.total)
    lines = [f"Total time for '{name}': {hours} hours {minutes} minutes", ""]

    if result.is_empty:
        lines.append(NO_MATCHES_MESSAGE)
        return "\n".join(lines)

    lines.append("Matched events:")
    for i, matched in enumerate(result.matched, 1):
        event_hours, event_minutes = split_duration(matched.duration)
        lines.append(
            f"{i}. {matched.summary} "
            f"({_local(matched.start, tz)} - {_local(matched.end, tz)}) "
            f"[{event_hours}h {event_minutes}m]"
        )
    return "\n".join(lines)
