"""Environment-backed settings.

All defaults are defined here. Values are read from ``POCKET_*`` environment
variables or a local ``.env`` file.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the authorization handshake.

    Env vars use the ``POCKET_`` prefix:
        POCKET_CONSUMER_KEY=1234-abcd
        POCKET_CALLBACK_PORT=8081
    """

    model_config = SettingsConfigDict(
        env_prefix="POCKET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Remote API
    HOST: str = Field("https://getpocket.com/v3", description="Base URL of the remote API")
    CONSUMER_KEY: str = Field("", description="Application consumer key")
    REDIRECT_URI: str = Field(
        "http://localhost:8080/auth/callback",
        description="Where the browser is sent after the user approves access",
    )
    AUTHORIZE_URL: str = Field(
        "https://getpocket.com/auth/authorize",
        description="Page the resource owner opens to approve the request token",
    )

    # Handshake
    AUTHORIZATION_TIMEOUT_SECONDS: float = Field(
        60.0, gt=0, description="Ceiling on one authorization attempt, browser approval included"
    )
    OPEN_BROWSER: bool = Field(False, description="Open the authorization URL automatically")

    # HTTP client
    HTTP_TIMEOUT_SECONDS: float = Field(10.0, gt=0)
    HTTP_MAX_CONNECTIONS: int = Field(100, gt=0)

    # Callback listener
    CALLBACK_HOST: str = Field("localhost")
    CALLBACK_PORT: int = Field(8080, ge=0, le=65535)
    CALLBACK_PATH: str = Field("/auth/callback")
    CALLBACK_SHUTDOWN_GRACE_SECONDS: float = Field(5.0, gt=0)

    LOG_LEVEL: str = Field("INFO")

    @field_validator("CALLBACK_PATH")
    @classmethod
    def ensure_leading_slash(cls, value: str) -> str:
        """Callback paths are absolute."""
        if not value.startswith("/"):
            return f"/{value}"
        return value

    @field_validator("HOST", "AUTHORIZE_URL")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Endpoint paths are appended to these URLs."""
        return value.rstrip("/")
