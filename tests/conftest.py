"""Shared fixtures for gcal-sum tests."""

import json
import socket
from datetime import timedelta, timezone

import pytest

from gcal_sum.calendar import CalendarEvent
from gcal_sum.google import GoogleOAuth

JST = timezone(timedelta(hours=9), "JST")


@pytest.fixture
def jst():
    return JST


@pytest.fixture
def mock_credentials(tmp_path):
    """Create a mock credentials file."""
    creds = {
        "installed": {
            "client_id": "test-client-id.apps.googleusercontent.com",
            "client_secret": "test-client-secret",
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "redirect_uris": ["http://localhost"],
        }
    }
    creds_path = tmp_path / "credentials.json"
    with open(creds_path, "w") as f:
        json.dump(creds, f)
    return creds_path


@pytest.fixture
def oauth(mock_credentials):
    return GoogleOAuth(
        credentials_path=mock_credentials,
        redirect_uri="http://localhost:8080/",
    )


@pytest.fixture
def free_port():
    """A loopback port that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def make_event(summary, start=None, end=None, date=None, event_id=None):
    """Build a CalendarEvent; pass ``date`` for an all-day event."""
    return CalendarEvent(
        id=event_id or f"evt-{summary}-{start or date}",
        summary=summary,
        start_time=start,
        end_time=end,
    )
