"""Tests for the loopback redirect listener."""

import http.client
import socket
import threading

import pytest

from gcal_sum.google import (
    AuthorizationDeniedError,
    AuthorizationTimeoutError,
    ListenerError,
    RedirectListener,
)
from gcal_sum.google.callback import NO_CODE_MESSAGE, SUCCESS_MESSAGE


def http_get(port, path):
    """GET from the listener without going through any proxy."""
    conn = http.client.HTTPConnection("127.0.0.1", port, timeout=5)
    try:
        conn.request("GET", path)
        response = conn.getresponse()
        return response.status, response.read().decode("utf-8")
    finally:
        conn.close()


@pytest.fixture
def listener():
    listener = RedirectListener(port=0, grace_period=1.0)
    listener.start()
    yield listener
    listener.stop()


class TestRedirectListener:
    """Test capture of the OAuth redirect."""

    def test_captures_code(self, listener):
        """Should hand the redirect path to the waiting consumer."""
        status, body = http_get(listener.port, "/?code=abc123&state=xyz")

        assert status == 200
        assert body == SUCCESS_MESSAGE
        assert listener.wait(timeout=5) == "/?code=abc123&state=xyz"

    def test_no_code_does_not_unblock(self, listener):
        """Should answer requests without a code but keep waiting."""
        status, body = http_get(listener.port, "/favicon.ico")

        assert status == 200
        assert body == NO_CODE_MESSAGE
        with pytest.raises(AuthorizationTimeoutError):
            listener.wait(timeout=0.2)

    def test_code_after_stray_request(self, listener):
        """Should still accept the real redirect after a stray request."""
        http_get(listener.port, "/")
        http_get(listener.port, "/?code=late")

        assert listener.wait(timeout=5) == "/?code=late"

    def test_denied_consent(self, listener):
        """Should surface a provider error instead of hanging."""
        http_get(listener.port, "/?error=access_denied&error_description=User+said+no")

        with pytest.raises(AuthorizationDeniedError, match="access_denied") as excinfo:
            listener.wait(timeout=5)
        assert excinfo.value.description == "User said no"

    def test_first_code_wins(self, listener):
        """Should keep only the first code in the one-slot channel."""
        http_get(listener.port, "/?code=first")
        status, _ = http_get(listener.port, "/?code=second")

        assert status == 200
        assert listener.wait(timeout=5) == "/?code=first"

    def test_wait_blocks_until_redirect(self, listener):
        """Should block the consumer until the producer delivers."""
        timer = threading.Timer(0.2, http_get, args=(listener.port, "/?code=delayed"))
        timer.start()
        try:
            assert listener.wait() == "/?code=delayed"
        finally:
            timer.join()

    def test_bind_failure(self, listener):
        """Should raise ListenerError when the port is taken."""
        second = RedirectListener(port=listener.port)

        with pytest.raises(ListenerError, match=str(listener.port)):
            second.start()
        assert second.running is False

    def test_stop_releases_port(self):
        """Should free the port so the next run can bind it."""
        first = RedirectListener(port=0, grace_period=1.0)
        first.start()
        port = first.port
        first.stop()

        assert first.running is False
        with RedirectListener(port=port, grace_period=1.0) as second:
            assert second.port == port

    def test_stop_is_idempotent(self):
        """Should tolerate stopping twice or before start."""
        listener = RedirectListener(port=0)
        listener.stop()
        listener.start()
        listener.stop()
        listener.stop()

    def test_each_listener_has_own_channel(self):
        """Should not leak codes between listener instances."""
        with RedirectListener(port=0) as a, RedirectListener(port=0) as b:
            http_get(a.port, "/?code=for-a")

            assert a.wait(timeout=5) == "/?code=for-a"
            with pytest.raises(AuthorizationTimeoutError):
                b.wait(timeout=0.1)

    def test_idle_connection_does_not_block_redirect(self, listener):
        """Should handle the redirect while a preconnected socket sits idle."""
        idle = socket.create_connection(("127.0.0.1", listener.port), timeout=5)
        try:
            status, body = http_get(listener.port, "/?code=behind-idle")

            assert status == 200
            assert body == SUCCESS_MESSAGE
            assert listener.wait(timeout=5) == "/?code=behind-idle"
        finally:
            idle.close()

    def test_stop_leaves_no_blocking_threads(self):
        """Should not leave non-daemon threads behind after stopping."""
        before = set(threading.enumerate())
        listener = RedirectListener(port=0, grace_period=0.5)
        listener.start()
        idle = socket.create_connection(("127.0.0.1", listener.port), timeout=5)
        try:
            http_get(listener.port, "/?code=abc")
            listener.wait(timeout=5)
            listener.stop()

            leftover = [
                t.name
                for t in threading.enumerate()
                if t not in before and t.is_alive() and not t.daemon
            ]
            assert leftover == []
        finally:
            idle.close()
