"""Shared exceptions module."""

from typing import Optional


class PocketAuthException(Exception):
    """Base exception for pocketauth."""

    pass


class ConfigurationError(PocketAuthException):
    """Exception raised when the authenticator is constructed with invalid configuration."""

    def __init__(self, message: Optional[str] = "Invalid configuration"):
        """Create a new ConfigurationError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class MissingHostError(ConfigurationError):
    """Raised when the remote host is empty."""

    def __init__(self, message: Optional[str] = "missing host"):
        """Create a new MissingHostError instance."""
        super().__init__(message)


class MissingConsumerKeyError(ConfigurationError):
    """Raised when the consumer key is empty."""

    def __init__(self, message: Optional[str] = "missing consumer key"):
        """Create a new MissingConsumerKeyError instance."""
        super().__init__(message)


class MissingRedirectURIError(ConfigurationError):
    """Raised when the redirect URI is empty."""

    def __init__(self, message: Optional[str] = "missing redirect URI"):
        """Create a new MissingRedirectURIError instance."""
        super().__init__(message)


class RemoteAPIError(PocketAuthException):
    """Exception raised when the remote authorization API answers unexpectedly.

    Carries the HTTP status and the application error headers so callers can
    diagnose a failure without retrying it.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        status_text: str = "",
        error_detail: str = "",
        error_code: str = "",
    ):
        """Create a new RemoteAPIError instance.

        Args:
        ----
            message (str): The error message.
            status_code (int, optional): HTTP status returned by the remote API.
            status_text (str): Reason phrase for the status code.
            error_detail (str): Value of the ``X-Error`` response header.
            error_code (str): Value of the ``X-Error-Code`` response header.

        """
        self.message = message
        self.status_code = status_code
        self.status_text = status_text
        self.error_detail = error_detail
        self.error_code = error_code
        super().__init__(self.message)


class TokenExchangeError(PocketAuthException):
    """Base for failures of one of the two token calls.

    The message is prefixed with the operation name; the underlying cause, if
    any, is chained with ``raise ... from``.
    """

    operation: str = "token exchange"

    def __init__(self, message: str):
        """Create a new TokenExchangeError instance.

        Args:
        ----
            message (str): What went wrong.

        """
        self.message = f"{self.operation}: {message}"
        super().__init__(self.message)


class RequestTokenError(TokenExchangeError):
    """Raised when obtaining a request token fails."""

    operation = "obtain request token"


class AccessTokenError(TokenExchangeError):
    """Raised when exchanging a request token for an access token fails."""

    operation = "obtain access token"


class AuthorizationTimeoutError(PocketAuthException):
    """Raised when the resource owner does not approve access in time."""

    def __init__(self, timeout_seconds: float, message: Optional[str] = None):
        """Create a new AuthorizationTimeoutError instance.

        Args:
        ----
            timeout_seconds (float): The window that expired.
            message (str, optional): Custom error message.

        """
        if message is None:
            message = f"user authorization not received within {timeout_seconds:g} seconds"

        self.timeout_seconds = timeout_seconds
        self.message = message
        super().__init__(self.message)


class ListenerShutdownError(PocketAuthException):
    """Raised when the local callback listener fails to stop cleanly."""

    def __init__(self, message: Optional[str] = "could not shutdown callback listener"):
        """Create a new ListenerShutdownError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)
