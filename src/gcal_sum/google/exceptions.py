"""Google authentication exceptions."""


class GoogleAuthError(Exception):
    """Base exception for Google authentication errors."""

    pass


class CredentialsNotFoundError(GoogleAuthError):
    """Raised when OAuth credentials file is not found."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Credentials file not found at {path}. "
            "Please download OAuth credentials from Google Cloud Console."
        )


class InvalidCredentialsError(GoogleAuthError):
    """Raised when the OAuth credentials file cannot be used."""

    pass


class TokenNotFoundError(GoogleAuthError):
    """Raised when no token has been stored yet."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No token stored at {path}")


class TokenDecodeError(GoogleAuthError):
    """Raised when a stored token is not a well-formed token record."""

    pass


class TokenError(GoogleAuthError):
    """Raised when there's an issue with the OAuth token."""

    pass


class AuthorizationError(GoogleAuthError):
    """Raised when interactive authorization cannot complete."""

    pass


class ListenerError(AuthorizationError):
    """Raised when the local redirect listener cannot be started."""

    pass


class AuthorizationDeniedError(AuthorizationError):
    """Raised when the provider redirects back with an error."""

    def __init__(self, error: str, description: str | None = None):
        self.error = error
        self.description = description
        message = f"Authorization denied: {error}"
        if description:
            message += f" ({description})"
        super().__init__(message)


class AuthorizationTimeoutError(AuthorizationError):
    """Raised when the user did not complete authorization in time."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"User did not complete authorization within {timeout:g} seconds")
