"""Calendar and date range exceptions."""


class CalendarError(Exception):
    """Base exception for calendar errors."""

    pass


class DateParseError(CalendarError, ValueError):
    """Raised when a date or month argument cannot be parsed."""

    def __init__(self, role: str, value: str, expected: str):
        self.role = role
        self.value = value
        self.expected = expected
        super().__init__(f"Invalid {role} {value!r}: expected {expected}")


class InvalidWindowError(CalendarError, ValueError):
    """Raised when a time window would be empty or reversed."""

    pass


class CalendarAPIError(CalendarError):
    """Raised when the Calendar API returns an error."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
