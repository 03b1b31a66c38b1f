"""Google Calendar API client implementation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from googleapiclient.errors import HttpError

from gcal_sum.calendar.exceptions import CalendarAPIError
from gcal_sum.calendar.window import TimeWindow
from gcal_sum.google import TokenManager

MAX_RESULTS_PER_PAGE = 250


@dataclass(frozen=True)
class Calendar:
    """Represents a Google Calendar."""

    id: str
    summary: str
    primary: bool = False


@dataclass(frozen=True)
class CalendarEvent:
    """Represents a Google Calendar event as returned by the API.

    Times are the raw RFC 3339 strings; they are parsed during aggregation.
    """

    id: str
    summary: str
    start_time: str | None = None
    end_time: str | None = None

    @property
    def is_all_day(self) -> bool:
        """All-day events have no start time."""
        return self.start_time is None


class CalendarClient:
    """Read-only Google Calendar API client.

    Usage:
        client = CalendarClient(token_manager)

        # List calendars
        calendars = client.list_calendars()

        # List events in a window
        events = client.list_events("primary", TimeWindow.from_month("2024-03", tz))
    """

    def __init__(
        self,
        token_manager: TokenManager | None = None,
        service: Any = None,
    ) -> None:
        """Initialize Calendar client.

        Args:
            token_manager: Supplies the authenticated API service.
            service: A prebuilt Calendar API service (skips the token manager).
        """
        if token_manager is None and service is None:
            raise ValueError("CalendarClient needs a token manager or a service")
        self._token_manager = token_manager
        self._service = service

    def _get_service(self) -> Any:
        """Get or create Calendar API service."""
        if self._service is None:
            self._service = self._token_manager.build_service("calendar", "v3")
        return self._service

    # =========================================================================
    # Calendars
    # =========================================================================

    def list_calendars(self) -> list[Calendar]:
        """List all calendars.

        Returns:
            List of Calendar objects.
        """
        service = self._get_service()
        calendars = []
        page_token = None
        while True:
            kwargs: dict[str, Any] = {}
            if page_token:
                kwargs["pageToken"] = page_token
            results = self._execute(service.calendarList().list(**kwargs), "list calendars")
            calendars.extend(self._parse_calendar(item) for item in results.get("items", []))
            page_token = results.get("nextPageToken")
            if not page_token:
                break

        return calendars

    def _parse_calendar(self, data: dict) -> Calendar:
        """Parse calendar from API response."""
        return Calendar(
            id=data["id"],
            summary=data.get("summary", ""),
            primary=data.get("primary", False),
        )

    # =========================================================================
    # Events
    # =========================================================================

    def list_events(self, calendar_id: str, window: TimeWindow) -> list[CalendarEvent]:
        """List events overlapping ``window``, ordered by start time.

        Recurring events are expanded into single instances.

        Args:
            calendar_id: Calendar ID or "primary" for the main calendar.
            window: Time range to query; the end is exclusive.

        Returns:
            List of CalendarEvent objects.
        """
        service = self._get_service()

        kwargs: dict[str, Any] = {
            "calendarId": calendar_id,
            "timeMin": self._format_datetime(window.start),
            "timeMax": self._format_datetime(window.end),
            "maxResults": MAX_RESULTS_PER_PAGE,
            "singleEvents": True,
            "orderBy": "startTime",
        }

        events = []
        while True:
            results = self._execute(service.events().list(**kwargs), "list events")
            events.extend(self._parse_event(item) for item in results.get("items", []))
            page_token = results.get("nextPageToken")
            if not page_token:
                break
            kwargs["pageToken"] = page_token

        return events

    def _execute(self, request: Any, action: str) -> dict:
        try:
            return request.execute()
        except HttpError as e:
            status = getattr(e.resp, "status", None)
            raise CalendarAPIError(f"Failed to {action}: {e}", status_code=status) from e

    def _format_datetime(self, dt: datetime) -> str:
        """Format datetime for API (RFC 3339)."""
        return dt.isoformat(timespec="seconds")

    def _parse_event(self, data: dict) -> CalendarEvent:
        """Parse event from API response."""
        start_data = data.get("start", {})
        end_data = data.get("end", {})

        return CalendarEvent(
            id=data.get("id", ""),
            summary=data.get("summary", ""),
            start_time=start_data.get("dateTime") or None,
            end_time=end_data.get("dateTime") or None,
        )
