"""gcal-sum - total the time spent in named Google Calendar events."""

__version__ = "0.1.0"
