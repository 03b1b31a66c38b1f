"""Loopback listener that captures the OAuth redirect.

Each :class:`RedirectListener` owns its own ``ThreadingHTTPServer`` and request
handler class. The handler closes over the listener's one-slot queue, so
nothing is registered process-wide and a listener is discarded once
stopped.
"""

from __future__ import annotations

import logging
import queue
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlparse

from gcal_sum.google.exceptions import (
    AuthorizationDeniedError,
    AuthorizationTimeoutError,
    ListenerError,
)

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Authorization complete. You may close this page."
NO_CODE_MESSAGE = "No authorization code was received."
DENIED_MESSAGE = "Authorization was not granted. You may close this page."

DEFAULT_GRACE_PERIOD = 5.0
REQUEST_TIMEOUT = 5.0


def _make_handler(channel: queue.Queue) -> type[BaseHTTPRequestHandler]:
    """Build a request handler class bound to ``channel``."""

    def offer(item) -> None:
        try:
            channel.put_nowait(item)
        except queue.Full:
            logger.debug("Redirect already captured; ignoring repeated callback")

    class RedirectHandler(BaseHTTPRequestHandler):
        # Idle connections (browser preconnects) are dropped after this
        timeout = REQUEST_TIMEOUT

        def do_GET(self):
            params = parse_qs(urlparse(self.path).query)
            code = params.get("code", [None])[0]
            error = params.get("error", [None])[0]

            if code:
                self._respond(SUCCESS_MESSAGE)
                offer(self.path)
            elif error:
                self._respond(DENIED_MESSAGE)
                description = params.get("error_description", [None])[0]
                offer(AuthorizationDeniedError(error, description))
            else:
                # Stray requests (favicon, reloads) must not end the flow
                self._respond(NO_CODE_MESSAGE)

        def _respond(self, message: str) -> None:
            body = message.encode("utf-8")
            self.send_response(200)
            self.send_header("Content-Type", "text/plain; charset=utf-8")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format, *args):
            logger.debug(f"redirect listener: {format % args}")

    return RedirectHandler


class RedirectListener:
    """Short-lived HTTP listener for a single OAuth redirect.

    Usage:
        with RedirectListener(port=8080) as listener:
            path = listener.wait()
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 8080,
        grace_period: float = DEFAULT_GRACE_PERIOD,
    ):
        self.host = host
        self.requested_port = port
        self.grace_period = grace_period
        self._channel: queue.Queue = queue.Queue(maxsize=1)
        self._server: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        """Port actually bound (differs from the requested one for port 0)."""
        if self._server is None:
            return self.requested_port
        return self._server.server_address[1]

    @property
    def running(self) -> bool:
        return self._server is not None

    def start(self) -> None:
        """Bind the socket and serve in a background thread.

        Raises:
            ListenerError: If the address cannot be bound.
        """
        if self._server is not None:
            raise RuntimeError("Listener already started")

        handler = _make_handler(self._channel)
        try:
            self._server = ThreadingHTTPServer((self.host, self.requested_port), handler)
        except OSError as e:
            raise ListenerError(
                f"Cannot listen on {self.host}:{self.requested_port}: {e}"
            ) from e

        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name="oauth-redirect-listener",
            daemon=True,
        )
        self._thread.start()
        logger.debug(f"Redirect listener started on {self.host}:{self.port}")

    def wait(self, timeout: float | None = None) -> str:
        """Block until the redirect carrying a code arrives.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely.

        Returns:
            The request path including its query string.

        Raises:
            AuthorizationDeniedError: If the provider redirected with an error.
            AuthorizationTimeoutError: If ``timeout`` elapsed first.
        """
        try:
            item = self._channel.get(timeout=timeout)
        except queue.Empty:
            raise AuthorizationTimeoutError(timeout) from None

        if isinstance(item, Exception):
            raise item
        return item

    def stop(self) -> None:
        """Shut the server down, allowing in-flight requests a grace period."""
        if self._server is None:
            return

        server, self._server = self._server, None
        stopper = threading.Thread(
            target=server.shutdown, name="oauth-redirect-shutdown", daemon=True
        )
        stopper.start()
        stopper.join(self.grace_period)
        if stopper.is_alive():
            logger.warning(
                f"Redirect listener did not stop within {self.grace_period:g}s; closing socket"
            )
        server.server_close()

        if self._thread is not None:
            self._thread.join(self.grace_period)
            self._thread = None
        logger.debug("Redirect listener stopped")

    def __enter__(self) -> RedirectListener:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
