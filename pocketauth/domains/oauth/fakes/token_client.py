"""Fake token exchange client for testing."""

import asyncio
from typing import Any, Optional

from pocketauth.domains.oauth.types import AccessTokenResponse


class FakeTokenExchangeClient:
    """In-memory fake for TokenExchangeClientProtocol.

    Seed the request token and access token to hand out, an error or a delay
    per operation, and inspect recorded calls for assertions.
    """

    def __init__(
        self,
        request_token: str = "request-token",
        access_token: str = "access-token",
        username: str = "reader",
    ) -> None:
        self._request_token = request_token
        self._access_token = AccessTokenResponse(access_token=access_token, username=username)
        self._request_token_error: Optional[Exception] = None
        self._access_token_error: Optional[Exception] = None
        self._request_token_delay = 0.0
        self._access_token_delay = 0.0
        self._calls: list[tuple[Any, ...]] = []
        self.closed = False

    # -- seeding helpers --

    def seed_request_token(self, request_token: str) -> None:
        self._request_token = request_token

    def seed_access_token(self, access_token: str, username: str = "") -> None:
        self._access_token = AccessTokenResponse(access_token=access_token, username=username)

    def fail_request_token(self, error: Exception) -> None:
        self._request_token_error = error

    def fail_access_token(self, error: Exception) -> None:
        self._access_token_error = error

    def delay_request_token(self, seconds: float) -> None:
        self._request_token_delay = seconds

    def delay_access_token(self, seconds: float) -> None:
        self._access_token_delay = seconds

    def clear_errors(self) -> None:
        self._request_token_error = None
        self._access_token_error = None

    @property
    def calls(self) -> list[tuple[Any, ...]]:
        return list(self._calls)

    def calls_for(self, method: str) -> list[tuple[Any, ...]]:
        return [c for c in self._calls if c[0] == method]

    # -- protocol --

    async def obtain_request_token(self, consumer_key: str, redirect_uri: str) -> str:
        self._calls.append(("obtain_request_token", consumer_key, redirect_uri))
        if self._request_token_delay:
            await asyncio.sleep(self._request_token_delay)
        if self._request_token_error:
            raise self._request_token_error
        return self._request_token

    async def obtain_access_token(
        self, consumer_key: str, request_token: str
    ) -> AccessTokenResponse:
        self._calls.append(("obtain_access_token", consumer_key, request_token))
        if self._access_token_delay:
            await asyncio.sleep(self._access_token_delay)
        if self._access_token_error:
            raise self._access_token_error
        return self._access_token

    async def aclose(self) -> None:
        self.closed = True
