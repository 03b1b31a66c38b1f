"""OAuth token record and its on-disk storage."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from gcal_sum.google.exceptions import TokenDecodeError, TokenNotFoundError

logger = logging.getLogger(__name__)

TOKEN_FILE_MODE = 0o600


@dataclass(frozen=True)
class Token:
    """An OAuth 2.0 token as issued by Google."""

    access_token: str
    refresh_token: str | None = None
    expiry: datetime | None = None
    token_type: str = "Bearer"
    scope: str | None = None

    @property
    def scopes(self) -> set[str]:
        """Granted scopes, empty when the record did not carry them."""
        return set(self.scope.split()) if self.scope else set()

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check expiry. A token without an expiry counts as expired."""
        if self.expiry is None:
            return True
        now = now or datetime.now(timezone.utc)
        return now >= self.expiry

    @classmethod
    def from_authlib(cls, token: dict[str, Any], refresh_token: str | None = None) -> Token:
        """Build a Token from an Authlib token dict.

        Args:
            token: Token dict as returned by ``fetch_token``/``refresh_token``.
            refresh_token: Refresh token to keep when the response omits one.
        """
        expires_at = token.get("expires_at")
        expiry = (
            datetime.fromtimestamp(float(expires_at), tz=timezone.utc)
            if expires_at is not None
            else None
        )
        return cls(
            access_token=token["access_token"],
            refresh_token=token.get("refresh_token") or refresh_token,
            expiry=expiry,
            token_type=token.get("token_type", "Bearer"),
            scope=token.get("scope"),
        )

    def to_authlib(self) -> dict[str, Any]:
        """Convert to the dict shape Authlib sessions expect."""
        token: dict[str, Any] = {
            "access_token": self.access_token,
            "token_type": self.token_type,
        }
        if self.refresh_token:
            token["refresh_token"] = self.refresh_token
        if self.expiry is not None:
            token["expires_at"] = int(self.expiry.timestamp())
        if self.scope:
            token["scope"] = self.scope
        return token

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted record format."""
        data: dict[str, Any] = {
            "access_token": self.access_token,
            "token_type": self.token_type,
        }
        if self.refresh_token:
            data["refresh_token"] = self.refresh_token
        if self.expiry is not None:
            data["expiry"] = self.expiry.isoformat()
        if self.scope:
            data["scope"] = self.scope
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Token:
        """Parse a persisted record.

        Accepts both this tool's field names and the Google
        ``authorized_user`` spellings (``token``, ``type``, ``scopes``).

        Raises:
            TokenDecodeError: If the record is not a usable token.
        """
        if not isinstance(data, dict):
            raise TokenDecodeError("Token record must be a JSON object")

        access_token = data.get("access_token") or data.get("token")
        if not access_token or not isinstance(access_token, str):
            raise TokenDecodeError("Token record has no access token")

        expiry = data.get("expiry")
        if expiry is not None:
            expiry = _parse_expiry(expiry)

        scope = data.get("scope")
        if scope is None and data.get("scopes"):
            scope = " ".join(data["scopes"])

        return cls(
            access_token=access_token,
            refresh_token=data.get("refresh_token") or None,
            expiry=expiry,
            token_type=data.get("token_type") or data.get("type") or "Bearer",
            scope=scope,
        )


def _parse_expiry(value: Any) -> datetime:
    """Parse an expiry given as an ISO timestamp or epoch seconds."""
    try:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value, tz=timezone.utc)
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise TokenDecodeError(f"Invalid token expiry {value!r}") from e

    # Naive timestamps are written by google-auth in UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class TokenStore:
    """Loads and saves a single token record at a fixed path."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Token:
        """Load the stored token.

        Raises:
            TokenNotFoundError: If nothing has been stored yet.
            TokenDecodeError: If the file is not a well-formed token record.
        """
        if not self.path.exists():
            raise TokenNotFoundError(str(self.path))

        try:
            with open(self.path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TokenDecodeError(f"Token file {self.path} is not valid JSON: {e}") from e

        token = Token.from_dict(data)
        logger.debug(f"Loaded token from {self.path}")
        return token

    def save(self, token: Token) -> None:
        """Write the token, replacing any previous record.

        The file is readable and writable by the owner only.
        """
        logger.info(f"Saving token to {self.path}")
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, TOKEN_FILE_MODE)
        with os.fdopen(fd, "w") as f:
            json.dump(token.to_dict(), f, indent=2)

        # O_CREAT's mode only applies to new files
        os.chmod(self.path, TOKEN_FILE_MODE)
