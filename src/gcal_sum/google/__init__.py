"""Google OAuth token lifecycle for gcal-sum."""

from gcal_sum.google.auth_flow import AuthFlow
from gcal_sum.google.callback import RedirectListener
from gcal_sum.google.exceptions import (
    AuthorizationDeniedError,
    AuthorizationError,
    AuthorizationTimeoutError,
    CredentialsNotFoundError,
    GoogleAuthError,
    InvalidCredentialsError,
    ListenerError,
    TokenDecodeError,
    TokenError,
    TokenNotFoundError,
)
from gcal_sum.google.oauth import GoogleOAuth
from gcal_sum.google.token_manager import TokenManager, TokenState
from gcal_sum.google.token_store import Token, TokenStore

__all__ = [
    "AuthFlow",
    "GoogleOAuth",
    "RedirectListener",
    "Token",
    "TokenManager",
    "TokenState",
    "TokenStore",
    "GoogleAuthError",
    "CredentialsNotFoundError",
    "InvalidCredentialsError",
    "TokenNotFoundError",
    "TokenDecodeError",
    "TokenError",
    "AuthorizationError",
    "AuthorizationDeniedError",
    "AuthorizationTimeoutError",
    "ListenerError",
]
