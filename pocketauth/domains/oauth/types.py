"""Value types for the OAuth domain.

These live in a separate module to avoid circular imports between
service implementations and protocol definitions.
"""

from enum import Enum

from pydantic import BaseModel


class AuthorizationState(str, Enum):
    """Where an authorization attempt currently is."""

    IDLE = "idle"
    AWAITING_REQUEST_TOKEN = "awaiting_request_token"
    AWAITING_USER_APPROVAL = "awaiting_user_approval"
    EXCHANGING_TOKEN = "exchanging_token"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class RequestTokenRequest(BaseModel):
    """Body of the request-token call."""

    consumer_key: str
    redirect_uri: str


class AccessTokenRequest(BaseModel):
    """Body of the access-token exchange call."""

    consumer_key: str
    code: str


class AccessTokenResponse(BaseModel):
    """Decoded result of a successful exchange."""

    access_token: str
    username: str = ""
