"""In-memory fakes for OAuth domain protocols."""

from pocketauth.domains.oauth.fakes.callback_listener import FakeCallbackListener
from pocketauth.domains.oauth.fakes.token_client import FakeTokenExchangeClient

__all__ = ["FakeCallbackListener", "FakeTokenExchangeClient"]
