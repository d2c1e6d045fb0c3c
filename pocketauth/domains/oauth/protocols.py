"""Protocols for OAuth domain dependencies."""

from typing import Protocol

from pocketauth.domains.oauth.signal import AuthorizationSignal
from pocketauth.domains.oauth.types import AccessTokenResponse


class TokenExchangeClientProtocol(Protocol):
    """Request-token and access-token calls against the remote API."""

    async def obtain_request_token(self, consumer_key: str, redirect_uri: str) -> str:
        """Obtain a short-lived request token."""
        ...

    async def obtain_access_token(
        self, consumer_key: str, request_token: str
    ) -> AccessTokenResponse:
        """Exchange an approved request token for an access token."""
        ...

    async def aclose(self) -> None:
        """Release transport resources."""
        ...


class CallbackListenerProtocol(Protocol):
    """Transient local server that turns one browser callback into a signal."""

    @property
    def is_running(self) -> bool:
        """True while the listener holds its port."""
        ...

    async def start(self, signal: AuthorizationSignal) -> None:
        """Bind the port and begin serving the callback route."""
        ...

    async def stop(self) -> None:
        """Release the port. Idempotent."""
        ...
