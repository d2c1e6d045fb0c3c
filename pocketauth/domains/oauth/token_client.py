"""Client for the two token calls of the authorization handshake.

1. Obtain a request token for the application
2. (user approves the request token in a browser)
3. Exchange the approved request token for an access token

Both calls post a JSON body and read back a form-encoded body
(``key=value&key2=value2``).
"""

from typing import Optional
from urllib.parse import parse_qs

import httpx
from pydantic import BaseModel

from pocketauth.core.exceptions import AccessTokenError, RemoteAPIError, RequestTokenError
from pocketauth.core.logging import ContextualLogger, logger, redact
from pocketauth.domains.oauth.protocols import TokenExchangeClientProtocol
from pocketauth.domains.oauth.types import (
    AccessTokenRequest,
    AccessTokenResponse,
    RequestTokenRequest,
)

ENDPOINT_REQUEST_TOKEN = "/oauth/request"
ENDPOINT_AUTHORIZE = "/oauth/authorize"

CONTENT_TYPE = "application/json; charset=UTF-8"
ACCEPT_FORM = "application/x-www-form-urlencoded"

X_ERROR_HEADER = "X-Error"
X_ERROR_CODE_HEADER = "X-Error-Code"


def build_http_client(timeout: float = 10.0, max_connections: int = 100) -> httpx.AsyncClient:
    """Create the default HTTP client for the remote API."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        limits=httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_connections,
        ),
    )


def parse_form(body: str) -> dict[str, str]:
    """Decode a flat form-encoded body. The first value of a repeated key wins."""
    return {key: values[0] for key, values in parse_qs(body, keep_blank_values=True).items()}


class TokenExchangeClient(TokenExchangeClientProtocol):
    """Performs the request-token and access-token calls against the remote API."""

    def __init__(
        self,
        host: str,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        max_connections: int = 100,
        logger: ContextualLogger = logger,
    ) -> None:
        """Initialize the client.

        Args:
            host: Base URL of the remote API, endpoint paths are appended to it
            http_client: Client to use. When omitted one is created from
                ``timeout`` and ``max_connections`` and owned by this instance.
            timeout: Per-request timeout in seconds for an owned client
            max_connections: Pool size for an owned client
            logger: Logger for request tracing
        """
        self._host = host.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or build_http_client(timeout, max_connections)
        self._logger = logger

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def obtain_request_token(self, consumer_key: str, redirect_uri: str) -> str:
        """Obtain a request token for ``consumer_key``.

        Raises:
            RequestTokenError: the call failed or the response carried no code
        """
        body = RequestTokenRequest(consumer_key=consumer_key, redirect_uri=redirect_uri)

        try:
            response = await self._make_request(ENDPOINT_REQUEST_TOKEN, body, httpx.codes.OK)
        except RemoteAPIError as e:
            raise RequestTokenError(f"could not make request for request token: {e}") from e

        values = parse_form(response.text)
        request_token = values.get("code", "")
        if not request_token:
            self._logger.error(f"Request token missing from API response: {response.text!r}")
            raise RequestTokenError("missing request token code in api response")

        self._logger.info(f"Obtained request token {redact(request_token)}")
        return request_token

    async def obtain_access_token(
        self, consumer_key: str, request_token: str
    ) -> AccessTokenResponse:
        """Exchange an approved request token for an access token.

        The username may legitimately be empty.

        Raises:
            AccessTokenError: the call failed or the response carried no access token
        """
        body = AccessTokenRequest(consumer_key=consumer_key, code=request_token)

        try:
            response = await self._make_request(ENDPOINT_AUTHORIZE, body, httpx.codes.OK)
        except RemoteAPIError as e:
            raise AccessTokenError(f"could not make request for access token: {e}") from e

        values = parse_form(response.text)
        access_token = values.get("access_token", "")
        if not access_token:
            self._logger.error("Access token missing from API response")
            raise AccessTokenError("empty access token in API response")

        username = values.get("username", "")
        self._logger.info(f"Obtained access token {redact(access_token)} for '{username}'")
        return AccessTokenResponse(access_token=access_token, username=username)

    async def _make_request(
        self, endpoint: str, body: BaseModel, expected_status_code: int
    ) -> httpx.Response:
        """POST ``body`` to ``endpoint`` and require ``expected_status_code``.

        Raises:
            RemoteAPIError: transport failure or any other status code
        """
        url = f"{self._host}{endpoint}"
        self._logger.debug(f"POST {url}")

        try:
            response = await self._http.post(
                url,
                content=body.model_dump_json(),
                headers={"Content-Type": CONTENT_TYPE, "X-Accept": ACCEPT_FORM},
            )
        except httpx.HTTPError as e:
            self._logger.error(f"Request to {url} failed: {e}")
            raise RemoteAPIError(f"could not make request: {e}") from e

        if response.status_code != expected_status_code:
            status_text = httpx.codes.get_reason_phrase(response.status_code)
            error_detail = response.headers.get(X_ERROR_HEADER, "")
            error_code = response.headers.get(X_ERROR_CODE_HEADER, "")
            self._logger.warning(
                f"Unexpected status {response.status_code} from {url}: "
                f"{error_detail or '<no X-Error header>'}"
            )
            raise RemoteAPIError(
                f"unexpected status code '{status_text}': {error_detail}",
                status_code=response.status_code,
                status_text=status_text,
                error_detail=error_detail,
                error_code=error_code,
            )

        return response
