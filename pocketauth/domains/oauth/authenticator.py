"""Authorization orchestrator for the request-token handshake.

One attempt runs:
1. Obtain a request token
2. Start the callback listener and show the authorization URL to the user
3. Wait (bounded) for the browser callback
4. Exchange the request token for an access token and cache it

The cached pair is returned without network activity until
``clear_credentials`` is called.
"""

import asyncio
import webbrowser
from typing import Awaitable, Callable, Optional, TypeVar
from urllib.parse import urlencode
from uuid import uuid4

import httpx

from pocketauth.core.exceptions import (
    AuthorizationTimeoutError,
    ListenerShutdownError,
    MissingConsumerKeyError,
    MissingHostError,
    MissingRedirectURIError,
)
from pocketauth.core.logging import ContextualLogger, logger, redact
from pocketauth.domains.oauth.callback_listener import CallbackListener
from pocketauth.domains.oauth.config import AuthenticatorConfig, ListenerConfig
from pocketauth.domains.oauth.credentials import SessionCredentials
from pocketauth.domains.oauth.protocols import (
    CallbackListenerProtocol,
    TokenExchangeClientProtocol,
)
from pocketauth.domains.oauth.signal import AuthorizationSignal
from pocketauth.domains.oauth.token_client import TokenExchangeClient
from pocketauth.domains.oauth.types import AuthorizationState

DEFAULT_AUTHORIZE_URL = "https://getpocket.com/auth/authorize"

# The user has to approve the request token in a browser within this window.
DEFAULT_AUTHORIZATION_TIMEOUT_SECONDS = 60.0

T = TypeVar("T")


def present_authorization_url(url: str) -> None:
    """Show the authorization URL to the resource owner."""
    print(f"\n\nAwaiting user authorization:\n\t{url}\n\n", flush=True)


class Authenticator:
    """Obtains and caches an access token for one consumer key.

    Credentials are instance state: separate authenticators never share them.
    """

    def __init__(
        self,
        host: str,
        consumer_key: str,
        redirect_uri: str,
        *,
        authorize_url: str = DEFAULT_AUTHORIZE_URL,
        authorization_timeout_seconds: float = DEFAULT_AUTHORIZATION_TIMEOUT_SECONDS,
        token_client: Optional[TokenExchangeClientProtocol] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        http_timeout_seconds: float = 10.0,
        http_max_connections: int = 100,
        listener_factory: Optional[Callable[[], CallbackListenerProtocol]] = None,
        presenter: Callable[[str], None] = present_authorization_url,
        open_browser: bool = False,
        logger: ContextualLogger = logger,
    ) -> None:
        """Initialize the authenticator.

        Args:
            host: Base URL of the remote API
            consumer_key: Application consumer key
            redirect_uri: Where the browser is sent after approval
            authorize_url: Page the resource owner opens to approve the request token
            authorization_timeout_seconds: Ceiling on one whole attempt
            token_client: Remote API client, built from ``host`` when omitted
            http_client: HTTP client for the default token client
            http_timeout_seconds: Per-request timeout of the default token client
            http_max_connections: Pool size of the default token client
            listener_factory: Builds one callback listener per attempt
            presenter: Shows the authorization URL to the resource owner
            open_browser: Also open the authorization URL in the default browser
            logger: Logger for attempt tracing

        Raises:
            MissingHostError: ``host`` is empty
            MissingConsumerKeyError: ``consumer_key`` is empty
            MissingRedirectURIError: ``redirect_uri`` is empty
        """
        self._validate(host, consumer_key, redirect_uri)

        self._host = host
        self._consumer_key = consumer_key
        self._redirect_uri = redirect_uri
        self._authorize_url = authorize_url
        self._authorization_timeout = authorization_timeout_seconds

        self._owns_token_client = token_client is None
        self._token_client = token_client or TokenExchangeClient(
            host,
            http_client=http_client,
            timeout=http_timeout_seconds,
            max_connections=http_max_connections,
            logger=logger,
        )
        self._listener_factory = listener_factory or CallbackListener
        self._presenter = presenter
        self._open_browser = open_browser
        self._logger = logger

        self._credentials = SessionCredentials()
        self._state = AuthorizationState.IDLE
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(
        cls,
        config: AuthenticatorConfig,
        listener_config: Optional[ListenerConfig] = None,
        **kwargs,
    ) -> "Authenticator":
        """Build an authenticator from config objects."""
        listener_config = listener_config or ListenerConfig.from_settings()
        kwargs.setdefault("listener_factory", lambda: CallbackListener(listener_config))

        return cls(
            config.host,
            config.consumer_key,
            config.redirect_uri,
            authorize_url=config.authorize_url,
            authorization_timeout_seconds=config.authorization_timeout_seconds,
            http_timeout_seconds=config.http_timeout_seconds,
            http_max_connections=config.http_max_connections,
            open_browser=config.open_browser,
            **kwargs,
        )

    @classmethod
    def from_settings(cls, **kwargs) -> "Authenticator":
        """Build an authenticator from environment settings."""
        return cls.from_config(
            AuthenticatorConfig.from_settings(), ListenerConfig.from_settings(), **kwargs
        )

    @staticmethod
    def _validate(host: str, consumer_key: str, redirect_uri: str) -> None:
        if not host:
            raise MissingHostError()
        if not consumer_key:
            raise MissingConsumerKeyError()
        if not redirect_uri:
            raise MissingRedirectURIError()

    async def __aenter__(self) -> "Authenticator":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the HTTP client if this authenticator created it."""
        if self._owns_token_client:
            await self._token_client.aclose()

    @property
    def state(self) -> AuthorizationState:
        """Current position in the authorization state machine."""
        return self._state

    @property
    def is_authenticated(self) -> bool:
        """True when credentials are cached."""
        return self._credentials.is_authenticated

    @property
    def credentials(self) -> tuple[str, str]:
        """Cached ``(access_token, username)``, empty strings when unset."""
        return self._credentials.as_tuple()

    def clear_credentials(self) -> None:
        """Forget cached credentials so the next ``authenticate`` runs the full flow."""
        self._credentials.clear()
        self._state = AuthorizationState.IDLE
        self._logger.info("Credentials cleared")

    def build_authorization_url(self, request_token: str) -> str:
        """Build the URL the resource owner opens to approve ``request_token``."""
        params = {"request_token": request_token, "redirect_uri": self._redirect_uri}
        return f"{self._authorize_url}?{urlencode(params)}"

    async def authenticate(self, timeout: Optional[float] = None) -> tuple[str, str]:
        """Return ``(access_token, username)``, running the handshake if needed.

        Args:
            timeout: Caller deadline in seconds. The attempt is bounded by the
                smaller of this and the configured ceiling.

        Returns:
            The access token and the username (which may be empty).

        Raises:
            RequestTokenError: the request token could not be obtained
            AuthorizationTimeoutError: the attempt did not complete within the window
            AccessTokenError: the exchange failed
            OSError: the callback listener could not bind its port
        """
        async with self._lock:
            if self._credentials.is_authenticated:
                return self._credentials.as_tuple()

            window = self._authorization_timeout
            if timeout is not None:
                window = min(timeout, window)

            attempt_logger = self._logger.with_context(attempt_id=uuid4().hex[:8])
            try:
                access_token, username = await self._run_attempt(window, attempt_logger)
            except (Exception, asyncio.CancelledError) as e:
                self._state = AuthorizationState.FAILED
                attempt_logger.warning(f"Authorization failed: {type(e).__name__}: {e}")
                raise

            self._credentials.store(access_token, username)
            self._state = AuthorizationState.AUTHENTICATED
            attempt_logger.info(f"Authenticated as '{username}'")
            return self._credentials.as_tuple()

    async def _run_attempt(self, window: float, log: ContextualLogger) -> tuple[str, str]:
        """Run one full handshake within ``window`` seconds. Caches nothing."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + window

        self._state = AuthorizationState.AWAITING_REQUEST_TOKEN
        log.info(f"Requesting request token from {self._host}")
        request_token = await self._within(
            self._token_client.obtain_request_token(self._consumer_key, self._redirect_uri),
            deadline,
            window,
            log,
            failure=f"request token not obtained within {window:g} seconds",
        )

        if loop.time() >= deadline:
            # Nothing is published once the window is gone.
            raise AuthorizationTimeoutError(
                window, f"request token obtained after the {window:g} second window expired"
            )

        self._state = AuthorizationState.AWAITING_USER_APPROVAL
        signal = AuthorizationSignal()
        listener = self._listener_factory()
        await listener.start(signal)
        try:
            self._publish(self.build_authorization_url(request_token), log)
            await self._within(signal.wait(), deadline, window, log)
        finally:
            signal.close()
            await self._stop_listener(listener, log)

        log.info(f"Authorization granted for request token {redact(request_token)}")

        self._state = AuthorizationState.EXCHANGING_TOKEN
        token = await self._within(
            self._token_client.obtain_access_token(self._consumer_key, request_token),
            deadline,
            window,
            log,
            failure=f"access token not obtained within {window:g} seconds",
        )
        return token.access_token, token.username

    @staticmethod
    async def _within(
        awaitable: Awaitable[T],
        deadline: float,
        window: float,
        log: ContextualLogger,
        failure: Optional[str] = None,
    ) -> T:
        """Await ``awaitable`` with whatever is left of the attempt window.

        ``failure`` overrides the default message, which reports missing user authorization.

        Raises:
            AuthorizationTimeoutError: the window expired before it completed
        """
        remaining = max(0.0, deadline - asyncio.get_running_loop().time())
        try:
            return await asyncio.wait_for(awaitable, timeout=remaining)
        except asyncio.TimeoutError:
            error = AuthorizationTimeoutError(window, failure)
            log.warning(f"Attempt window expired: {error}")
            raise error from None

    def _publish(self, authorization_url: str, log: ContextualLogger) -> None:
        """Hand the authorization URL to the resource owner."""
        log.info(f"Awaiting user authorization at {authorization_url}")
        self._presenter(authorization_url)

        if self._open_browser:
            if webbrowser.open(authorization_url):
                log.info("Opened browser for user authorization")
            else:
                log.info("Could not open browser automatically")

    @staticmethod
    async def _stop_listener(listener: CallbackListenerProtocol, log: ContextualLogger) -> None:
        """Release the callback port; a failed stop is logged, never raised."""
        try:
            await listener.stop()
        except ListenerShutdownError as e:
            log.error(f"Callback listener did not shut down cleanly: {e}")
