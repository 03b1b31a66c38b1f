"""Token lifecycle: load, validate, refresh or re-authorize, persist."""

from __future__ import annotations

import enum
import logging
from datetime import datetime, timezone
from typing import Any

from google.oauth2.credentials import Credentials as GoogleCredentials

from gcal_sum.google.auth_flow import AuthFlow
from gcal_sum.google.exceptions import TokenDecodeError, TokenError, TokenNotFoundError
from gcal_sum.google.oauth import GoogleOAuth
from gcal_sum.google.token_store import Token, TokenStore

logger = logging.getLogger(__name__)


class TokenState(enum.Enum):
    NO_TOKEN = "no_token"
    VALID = "valid"
    EXPIRED_WITH_REFRESH = "expired_with_refresh"
    EXPIRED_NO_REFRESH = "expired_no_refresh"


class TokenManager:
    """Produces a valid token for API calls.

    Stored tokens are used while unexpired. Expired tokens are refreshed
    silently when they carry a refresh token; if that fails, or there is
    no refresh token or no stored token, the interactive :class:`AuthFlow`
    runs. Any new token is persisted before it is returned.

    Example:
        >>> manager = TokenManager(oauth, TokenStore("token.json"), AuthFlow(oauth))
        >>> service = manager.build_service("calendar", "v3")
    """

    def __init__(
        self,
        oauth: GoogleOAuth,
        store: TokenStore,
        auth_flow: AuthFlow | None = None,
    ):
        self.oauth = oauth
        self.store = store
        self.auth_flow = auth_flow or AuthFlow(oauth)
        self._token: Token | None = None

    def classify(self, token: Token | None, now: datetime | None = None) -> TokenState:
        """Determine which lifecycle state ``token`` is in."""
        if token is None:
            return TokenState.NO_TOKEN

        # Records without scopes are accepted as-is
        if token.scopes and not set(self.oauth.required_scopes).issubset(token.scopes):
            missing = set(self.oauth.required_scopes) - token.scopes
            logger.warning(f"Token missing required scopes: {missing}")
            return TokenState.NO_TOKEN

        if not token.is_expired(now or datetime.now(timezone.utc)):
            return TokenState.VALID
        if token.refresh_token:
            return TokenState.EXPIRED_WITH_REFRESH
        return TokenState.EXPIRED_NO_REFRESH

    def _load(self) -> Token | None:
        try:
            return self.store.load()
        except TokenNotFoundError:
            logger.info("No existing token found")
        except TokenDecodeError as e:
            logger.warning(f"Ignoring unreadable token: {e}")
        return None

    def get_token(self) -> Token:
        """Return a valid token, refreshing or re-authorizing as needed."""
        if self._token is not None and not self._token.is_expired():
            return self._token

        token = self._load()
        state = self.classify(token)

        if state is TokenState.VALID:
            self._token = token
            return token

        if state is TokenState.EXPIRED_WITH_REFRESH:
            logger.info("Token expired, attempting refresh...")
            try:
                token = self.oauth.refresh(token)
                logger.info("Token refreshed successfully")
            except TokenError as e:
                logger.warning(f"Refresh failed: {e}. Starting new authorization flow...")
                token = self.auth_flow.run()
        elif state is TokenState.EXPIRED_NO_REFRESH:
            logger.info("Token expired and has no refresh token, re-authorizing...")
            token = self.auth_flow.run()
        else:
            token = self.auth_flow.run()

        self.store.save(token)
        self._token = token
        return token

    def get_credentials(self) -> GoogleCredentials:
        """Get Google Credentials object bound to a valid token."""
        return self.oauth.get_credentials(self.get_token())

    def build_service(self, service_name: str = "calendar", version: str = "v3") -> Any:
        """Build a Google API service with a valid token."""
        return self.oauth.build_service(self.get_token(), service_name, version)

    def get_token_info(self) -> dict[str, Any]:
        """Describe the stored token without changing it."""
        token = self._load()
        state = self.classify(token)
        if token is None:
            return {"status": state.value}

        return {
            "status": state.value,
            "scopes": sorted(token.scopes),
            "expiry": token.expiry.isoformat() if token.expiry else None,
            "has_refresh_token": bool(token.refresh_token),
        }
