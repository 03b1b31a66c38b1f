"""Google OAuth client using Authlib.

This module wraps the OAuth 2.0 endpoints gcal-sum talks to:
- Authorization URL construction (offline access, forced consent)
- Authorization code exchange
- Refresh of expired tokens
- Google API service creation from a token

It holds no token state; storing and choosing tokens is done by
:class:`gcal_sum.google.token_manager.TokenManager`.
"""

import json
import logging
from datetime import timezone
from pathlib import Path

import requests
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.requests_client import OAuth2Session
from google.oauth2.credentials import Credentials as GoogleCredentials
from googleapiclient.discovery import build

from gcal_sum.config import CREDENTIALS_FILE, get_redirect_uri
from gcal_sum.google.exceptions import (
    AuthorizationError,
    CredentialsNotFoundError,
    InvalidCredentialsError,
    TokenError,
)
from gcal_sum.google.token_store import Token

logger = logging.getLogger(__name__)


# Google Calendar OAuth scopes
SCOPES = {
    "calendar": "https://www.googleapis.com/auth/calendar",
    "calendar_readonly": "https://www.googleapis.com/auth/calendar.readonly",
}

DEFAULT_SCOPES = ["calendar_readonly"]


def resolve_scopes(scopes: list[str]) -> list[str]:
    """Resolve scope names to full URLs."""
    resolved = []
    for scope in scopes:
        if scope.startswith("https://"):
            resolved.append(scope)
        elif scope in SCOPES:
            resolved.append(SCOPES[scope])
        else:
            raise ValueError(
                f"Unknown scope: {scope}. Use full URL or one of: {list(SCOPES.keys())}"
            )
    return resolved


class GoogleOAuth:
    """Google OAuth endpoints for an installed application.

    Example:
        >>> auth = GoogleOAuth()
        >>> url = auth.get_authorization_url()
        >>> token = auth.fetch_token("http://localhost:8080/?code=...&state=...")
        >>> token = auth.refresh(token)
    """

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        scopes: list[str] | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        credentials_path: str | Path | None = None,
        redirect_uri: str | None = None,
    ):
        """Initialize Google OAuth.

        Args:
            scopes: List of scope names (e.g., ["calendar_readonly"]) or full URLs.
            client_id: OAuth client ID (loaded from credentials file if not provided).
            client_secret: OAuth client secret (loaded from credentials file if not provided).
            credentials_path: Path to OAuth credentials file. Defaults to the app directory.
            redirect_uri: Redirect URI served by the local listener.
        """
        self.credentials_path = Path(credentials_path) if credentials_path else CREDENTIALS_FILE
        self.required_scopes = resolve_scopes(scopes or DEFAULT_SCOPES)
        self.redirect_uri = redirect_uri or get_redirect_uri()

        self.authorize_url = self.AUTHORIZE_URL
        self.token_url = self.TOKEN_URL

        if not client_id or not client_secret:
            client_id, client_secret = self._load_client_credentials()

        self.client_id = client_id
        self.client_secret = client_secret
        self._state: str | None = None

    def _load_client_credentials(self) -> tuple[str, str]:
        """Load OAuth client credentials from file."""
        if not self.credentials_path.exists():
            raise CredentialsNotFoundError(str(self.credentials_path))

        try:
            with open(self.credentials_path) as f:
                creds = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidCredentialsError(f"Invalid JSON in {self.credentials_path}: {e}") from e

        # Handle both web and installed app credential formats
        if "installed" in creds:
            app_creds = creds["installed"]
        elif "web" in creds:
            app_creds = creds["web"]
        else:
            raise InvalidCredentialsError(
                "Invalid credentials.json format. Expected 'installed' or 'web' key."
            )

        try:
            client_id = app_creds["client_id"]
            client_secret = app_creds["client_secret"]
        except KeyError as e:
            raise InvalidCredentialsError(f"credentials.json is missing {e}") from e

        self.authorize_url = app_creds.get("auth_uri", self.AUTHORIZE_URL)
        self.token_url = app_creds.get("token_uri", self.TOKEN_URL)

        return client_id, client_secret

    def _session(self, token: Token | None = None) -> OAuth2Session:
        return OAuth2Session(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=" ".join(self.required_scopes),
            redirect_uri=self.redirect_uri,
            token=token.to_authlib() if token else None,
            token_endpoint=self.token_url,
            token_endpoint_auth_method="client_secret_post",
        )

    def get_authorization_url(self) -> str:
        """Start OAuth authorization flow.

        Offline access and forced consent make Google issue a refresh
        token on every authorization.

        Returns:
            Authorization URL for user to visit.
        """
        authorization_url, state = self._session().create_authorization_url(
            self.authorize_url,
            access_type="offline",
            prompt="consent",
        )

        self._state = state
        return authorization_url

    def fetch_token(self, authorization_response: str) -> Token:
        """Exchange the authorization code in a redirect URL for a token.

        Args:
            authorization_response: The full redirect URL from OAuth callback.

        Raises:
            AuthorizationError: If the code cannot be exchanged.
        """
        try:
            token = self._session().fetch_token(
                self.token_url,
                authorization_response=authorization_response,
                state=self._state,
            )
        except (AuthlibBaseError, requests.RequestException) as e:
            raise AuthorizationError(f"Failed to exchange authorization code: {e}") from e

        logger.info("Authorization code exchanged for token")
        return Token.from_authlib(token)

    def refresh(self, token: Token) -> Token:
        """Obtain a fresh access token using the token's refresh token.

        Raises:
            TokenError: If the token has no refresh token or refresh fails.
        """
        if not token.refresh_token:
            raise TokenError("Token has no refresh token")

        try:
            new_token = self._session(token).refresh_token(
                self.token_url,
                refresh_token=token.refresh_token,
            )
        except (AuthlibBaseError, requests.RequestException) as e:
            raise TokenError(f"Failed to refresh token: {e}") from e

        return Token.from_authlib(dict(new_token), refresh_token=token.refresh_token)

    def get_credentials(self, token: Token) -> GoogleCredentials:
        """Get Google Credentials object for API client libraries."""
        expiry = None
        if token.expiry is not None:
            # google-auth compares against naive UTC
            expiry = token.expiry.astimezone(timezone.utc).replace(tzinfo=None)

        return GoogleCredentials(
            token=token.access_token,
            refresh_token=token.refresh_token,
            token_uri=self.token_url,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=self.required_scopes,
            expiry=expiry,
        )

    def build_service(self, token: Token, service_name: str = "calendar", version: str = "v3"):
        """Build a Google API service bound to ``token``.

        Args:
            token: A valid token.
            service_name: Name of the service (e.g., 'calendar').
            version: API version (e.g., 'v3').

        Returns:
            Google API service object.
        """
        creds = self.get_credentials(token)
        return build(service_name, version, credentials=creds, cache_discovery=False)
