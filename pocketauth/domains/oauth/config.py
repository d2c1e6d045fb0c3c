"""Authenticator and callback listener configuration."""

from dataclasses import dataclass

from pocketauth.core.config import settings

CONFIRMATION_BODY = "Authorization granted. Bye!"


@dataclass(frozen=True)
class ListenerConfig:
    """Callback listener configuration.

    Attributes:
        host: Interface to bind
        port: Port to bind, 0 lets the OS pick one
        path: The single route that accepts the browser callback
        shutdown_grace_seconds: Bound on a graceful stop
        confirmation_body: Text shown in the browser after approval
    """

    host: str = "localhost"
    port: int = 8080
    path: str = "/auth/callback"
    shutdown_grace_seconds: float = 5.0
    confirmation_body: str = CONFIRMATION_BODY

    @classmethod
    def from_settings(cls) -> "ListenerConfig":
        """Build config from environment settings."""
        return cls(
            host=settings.CALLBACK_HOST,
            port=settings.CALLBACK_PORT,
            path=settings.CALLBACK_PATH,
            shutdown_grace_seconds=settings.CALLBACK_SHUTDOWN_GRACE_SECONDS,
        )


@dataclass(frozen=True)
class AuthenticatorConfig:
    """Authenticator configuration - all tunables in one place.

    Attributes:
        host: Base URL of the remote API
        consumer_key: Application consumer key
        redirect_uri: Where the browser goes after approval
        authorize_url: Page the resource owner opens to approve access
        authorization_timeout_seconds: Ceiling on one whole authorization attempt
        http_timeout_seconds: Per-request timeout against the remote API
        http_max_connections: Connection pool size
        open_browser: Open the authorization URL automatically
    """

    host: str
    consumer_key: str
    redirect_uri: str
    authorize_url: str = "https://getpocket.com/auth/authorize"
    authorization_timeout_seconds: float = 60.0
    http_timeout_seconds: float = 10.0
    http_max_connections: int = 100
    open_browser: bool = False

    @classmethod
    def from_settings(cls) -> "AuthenticatorConfig":
        """Build config from environment settings."""
        return cls(
            host=settings.HOST,
            consumer_key=settings.CONSUMER_KEY,
            redirect_uri=settings.REDIRECT_URI,
            authorize_url=settings.AUTHORIZE_URL,
            authorization_timeout_seconds=settings.AUTHORIZATION_TIMEOUT_SECONDS,
            http_timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
            http_max_connections=settings.HTTP_MAX_CONNECTIONS,
            open_browser=settings.OPEN_BROWSER,
        )
