"""Interactive browser authorization with a local redirect capture."""

from __future__ import annotations

import logging
import webbrowser
from collections.abc import Callable
from urllib.parse import urljoin, urlparse

from gcal_sum.google.callback import DEFAULT_GRACE_PERIOD, RedirectListener
from gcal_sum.google.oauth import GoogleOAuth
from gcal_sum.google.token_store import Token

logger = logging.getLogger(__name__)

LOOPBACK_HOST = "127.0.0.1"


class AuthFlow:
    """Obtain a fresh token through user consent.

    The flow starts a loopback listener on the redirect URI's port, shows
    the authorization URL, waits for Google to redirect back with a code,
    stops the listener and exchanges the code.

    Args:
        oauth: OAuth client configuration.
        timeout: Seconds to wait for the user, or None to wait indefinitely.
        grace_period: Seconds allowed for the listener to shut down.
        open_browser: Also open the URL with :mod:`webbrowser`.
        announce: Callable used to show the URL to the user.
    """

    def __init__(
        self,
        oauth: GoogleOAuth,
        timeout: float | None = None,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        open_browser: bool = False,
        announce: Callable[[str], None] = print,
    ):
        self.oauth = oauth
        self.timeout = timeout
        self.grace_period = grace_period
        self.open_browser = open_browser
        self.announce = announce

    @property
    def port(self) -> int:
        port = urlparse(self.oauth.redirect_uri).port
        return 80 if port is None else port

    def run(self) -> Token:
        """Run the consent flow.

        Raises:
            ListenerError: If the redirect port cannot be bound.
            AuthorizationDeniedError: If the user declined consent.
            AuthorizationTimeoutError: If ``timeout`` elapsed.
            AuthorizationError: If the code exchange failed.
        """
        listener = RedirectListener(LOOPBACK_HOST, self.port, self.grace_period)
        listener.start()
        try:
            url = self.oauth.get_authorization_url()
            self.announce(f"Open the following URL in your browser:\n{url}")
            if self.open_browser:
                webbrowser.open(url)

            logger.info("Waiting for authorization...")
            redirect_path = listener.wait(self.timeout)
        finally:
            listener.stop()

        return self.oauth.fetch_token(urljoin(self.oauth.redirect_uri, redirect_path))
