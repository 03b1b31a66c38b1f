"""Centralized configuration.

Credentials live next to the application by default:
    .env              - optional environment overrides
    credentials.json  - Google OAuth client credentials
    token.json        - OAuth token (created on first authorization)

The application directory is ``$GCAL_SUM_HOME`` when set, otherwise the
directory of the running script, falling back to the current directory.

This module auto-loads the .env file on import, so environment overrides
such as ``GCAL_SUM_TIMEZONE`` can be kept beside the credentials.
"""

import os
import sys
from datetime import timedelta, timezone, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Reference zone used for date parsing and display
DEFAULT_TIMEZONE = timezone(timedelta(hours=9), "JST")

DEFAULT_REDIRECT_PORT = 8080
DEFAULT_CALENDAR_ID = "primary"


class ConfigurationError(Exception):
    """Raised when local configuration is missing or invalid."""

    pass


def get_app_dir() -> Path:
    """Resolve the directory holding credentials and tokens."""
    override = os.environ.get("GCAL_SUM_HOME")
    if override:
        return Path(override).expanduser()

    script = Path(sys.argv[0]) if sys.argv and sys.argv[0] else None
    if script is not None and script.is_file():
        return script.resolve().parent

    return Path.cwd()


APP_DIR = get_app_dir()

ENV_FILE = APP_DIR / ".env"
CREDENTIALS_FILE = APP_DIR / "credentials.json"
TOKEN_FILE = APP_DIR / "token.json"


def _load_env_file(env_path: Path) -> dict[str, str]:
    """Load environment variables from a file.

    Args:
        env_path: Path to .env file.

    Returns:
        Dictionary of loaded variables.
    """
    loaded = {}
    if not env_path.exists():
        return loaded

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            # Real environment wins over .env
            if key and key not in os.environ:
                os.environ[key] = value
                loaded[key] = value

    return loaded


def get_timezone() -> tzinfo:
    """Return the reference timezone.

    ``GCAL_SUM_TIMEZONE`` may name an IANA zone (e.g. ``Asia/Tokyo``);
    otherwise a fixed UTC+9 offset is used.

    Raises:
        ConfigurationError: If the named zone has no tz data.
    """
    name = os.environ.get("GCAL_SUM_TIMEZONE")
    if not name:
        return DEFAULT_TIMEZONE

    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown timezone {name!r}: {e}") from e


def get_redirect_port() -> int:
    """Return the local port receiving the OAuth redirect."""
    value = os.environ.get("GCAL_SUM_REDIRECT_PORT")
    if not value:
        return DEFAULT_REDIRECT_PORT

    try:
        port = int(value)
    except ValueError as e:
        raise ConfigurationError(f"Invalid redirect port {value!r}") from e

    if not 0 < port < 65536:
        raise ConfigurationError(f"Redirect port out of range: {port}")
    return port


def get_redirect_uri(port: int | None = None) -> str:
    """Return the redirect URI registered with Google for this client."""
    return f"http://localhost:{port or get_redirect_port()}/"


# Auto-load .env from the application directory on import
_loaded = _load_env_file(ENV_FILE)
