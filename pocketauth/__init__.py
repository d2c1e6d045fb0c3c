"""pocketauth - request-token authorization handshake with a local callback listener.

Example:
    import asyncio

    from pocketauth import Authenticator

    async def main():
        async with Authenticator(
            "https://getpocket.com/v3",
            "1234-abcd1234abcd1234abcd1234",
            "http://localhost:8080/auth/callback",
        ) as authenticator:
            access_token, username = await authenticator.authenticate()

    asyncio.run(main())
"""

from pocketauth.core.exceptions import (
    AccessTokenError,
    AuthorizationTimeoutError,
    ConfigurationError,
    ListenerShutdownError,
    RequestTokenError,
)
from pocketauth.domains.oauth.authenticator import Authenticator
from pocketauth.domains.oauth.callback_listener import CallbackListener

__version__ = "0.1.0"
__all__ = [
    "AccessTokenError",
    "Authenticator",
    "AuthorizationTimeoutError",
    "CallbackListener",
    "ConfigurationError",
    "ListenerShutdownError",
    "RequestTokenError",
]
