"""CLI for gcal-sum - total the time spent in named calendar events.

Usage:
    gcal-sum --start 2024-03-01 --end 2024-03-31 --name Standup
    gcal-sum --month 2024-03 --name Standup [--calendar ID]
    gcal-sum --list                          # Show available calendars
    gcal-sum --status                        # Show stored token status

The first run opens an authorization flow: visit the printed URL, grant
access, and Google redirects back to a listener on localhost:8080. The
token is stored beside credentials.json and refreshed automatically.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

USAGE_HINT = (
    "Usage: gcal-sum --start=YYYY-MM-DD --end=YYYY-MM-DD --name=NAME [--calendar=ID]\n"
    "   or: gcal-sum --month=YYYY-MM --name=NAME [--calendar=ID]"
)


class UsageError(Exception):
    """Raised when the command line arguments are incomplete."""

    pass


def validate_args(args: argparse.Namespace) -> None:
    """Check required argument combinations before any network access."""
    if args.list or args.status:
        return
    if not args.name:
        raise UsageError("Please specify an event name with --name.")
    if args.month:
        return
    if not args.start and not args.end:
        raise UsageError("Please specify a date range with --start/--end or --month.")
    if not args.start or not args.end:
        raise UsageError("Both --start and --end are required when --month is not given.")


def resolve_window(args: argparse.Namespace, tz):
    """Build the query window; --month takes precedence over --start/--end."""
    from gcal_sum.calendar import TimeWindow

    if args.month:
        return TimeWindow.from_month(args.month, tz)
    return TimeWindow.from_dates(args.start, args.end, tz)


def make_token_manager(args: argparse.Namespace):
    """Wire the OAuth client, token store and authorization flow together."""
    from gcal_sum.config import TOKEN_FILE
    from gcal_sum.google import AuthFlow, GoogleOAuth, TokenManager, TokenStore

    oauth = GoogleOAuth(credentials_path=args.credentials)
    flow = AuthFlow(oauth, timeout=args.auth_timeout, open_browser=args.open_browser)
    store = TokenStore(args.token or TOKEN_FILE)
    return TokenManager(oauth, store, flow)


def cmd_list(client) -> int:
    """Print the calendars visible to the authorized account."""
    from gcal_sum.presenter import format_calendars

    print(format_calendars(client.list_calendars()))
    return 0


def cmd_status(manager) -> int:
    """Show the stored token's lifecycle state without authorizing."""
    info = manager.get_token_info()

    if info["status"] == "no_token":
        print("No token found - run gcal-sum to authorize")
        return 1

    print(f"Status     : {info['status']}")
    print(f"Scopes     : {', '.join(info['scopes']) or 'unknown'}")
    print(f"Expires at : {info['expiry'] or 'unknown'}")
    print(f"Refreshable: {'yes' if info['has_refresh_token'] else 'no'}")
    return 0


def cmd_sum(client, args: argparse.Namespace, window, tz) -> int:
    """Total the matching events in ``window`` and print the report."""
    from gcal_sum.calendar import EventAggregator
    from gcal_sum.presenter import format_period, format_report

    print(format_period(window))

    events = client.list_events(args.calendar, window)
    result = EventAggregator(args.name).aggregate(events)

    print(format_report(args.name, result, tz))
    return 0


def build_parser() -> argparse.ArgumentParser:
    from gcal_sum.config import DEFAULT_CALENDAR_ID

    parser = argparse.ArgumentParser(
        prog="gcal-sum",
        description="Sum the duration of Google Calendar events with a given name",
    )
    parser.add_argument("--start", help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end", help="End date, inclusive (YYYY-MM-DD)")
    parser.add_argument("--month", help="Month (YYYY-MM); overrides --start/--end")
    parser.add_argument("--name", help="Event name to match (case-insensitive, exact)")
    parser.add_argument(
        "--calendar",
        default=DEFAULT_CALENDAR_ID,
        help=f"Calendar ID (default: {DEFAULT_CALENDAR_ID})",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List available calendars and exit",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Show the stored token status and exit",
    )
    parser.add_argument(
        "--credentials",
        type=Path,
        help="Path to OAuth credentials.json (default: next to the application)",
    )
    parser.add_argument(
        "--token",
        type=Path,
        help="Path to the stored token (default: next to the application)",
    )
    parser.add_argument(
        "--auth-timeout",
        type=float,
        default=None,
        help="Seconds to wait for browser authorization (default: no limit)",
    )
    parser.add_argument(
        "--open-browser",
        action="store_true",
        help="Open the authorization URL in a browser",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    try:
        validate_args(args)
    except UsageError as e:
        print(f"Error: {e}")
        print(USAGE_HINT)
        return 1

    from gcal_sum.calendar import CalendarClient, CalendarError
    from gcal_sum.config import ConfigurationError, get_timezone
    from gcal_sum.google import GoogleAuthError

    step = "load configuration"
    try:
        tz = get_timezone()

        window = None
        if not (args.list or args.status):
            step = "parse date range"
            window = resolve_window(args, tz)

        step = "load OAuth credentials"
        manager = make_token_manager(args)

        if args.status:
            return cmd_status(manager)

        step = "authorize"
        manager.get_token()
        client = CalendarClient(manager)

        if args.list:
            step = "list calendars"
            return cmd_list(client)

        step = "fetch events"
        return cmd_sum(client, args, window, tz)

    except (ConfigurationError, GoogleAuthError, CalendarError, OSError) as e:
        print(f"Error: failed to {step}: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
