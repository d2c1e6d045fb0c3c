"""In-memory credential cache owned by one authenticator."""

from dataclasses import dataclass


@dataclass(slots=True)
class SessionCredentials:
    """Access token and username for the lifetime of a session.

    Both fields are set together and cleared together. An empty username with a
    non-empty token is still authenticated: the remote API may omit it.
    """

    access_token: str = ""
    username: str = ""

    @property
    def is_authenticated(self) -> bool:
        """True when an access token is cached."""
        return bool(self.access_token)

    def store(self, access_token: str, username: str) -> None:
        """Cache a freshly exchanged credential pair."""
        if not access_token:
            raise ValueError("refusing to cache an empty access token")
        self.access_token = access_token
        self.username = username

    def clear(self) -> None:
        """Forget the cached pair."""
        self.access_token = ""
        self.username = ""

    def as_tuple(self) -> tuple[str, str]:
        """Return ``(access_token, username)``."""
        return self.access_token, self.username
