"""Root conftest for pytest configuration and shared fixtures.

This conftest is loaded before the colocated tests under pocketauth/, making
its fixtures available to every test module.
"""

import os

import pytest

# Register pytest-asyncio plugin at the root level
pytest_plugins = ("pytest_asyncio",)

# ---------------------------------------------------------------------------
# Environment variables — must be set before any pocketauth module import
# Uses setdefault so real env vars are never overridden.
# ---------------------------------------------------------------------------
os.environ.setdefault("POCKET_HOST", "https://pocket.test/v3")
os.environ.setdefault("POCKET_CONSUMER_KEY", "test-consumer-key")
os.environ.setdefault("POCKET_REDIRECT_URI", "http://127.0.0.1:8080/auth/callback")
os.environ.setdefault("POCKET_CALLBACK_HOST", "127.0.0.1")
os.environ.setdefault("POCKET_LOG_LEVEL", "DEBUG")


# ---------------------------------------------------------------------------
# Shared fake fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_token_client():
    """Fake token exchange client that records calls."""
    from pocketauth.domains.oauth.fakes import FakeTokenExchangeClient

    return FakeTokenExchangeClient()


@pytest.fixture
def fake_listener():
    """Fake callback listener that calls back as soon as it starts."""
    from pocketauth.domains.oauth.fakes import FakeCallbackListener

    return FakeCallbackListener()


@pytest.fixture
def presented_urls():
    """Collects authorization URLs shown to the user."""
    return []


@pytest.fixture
def created_listeners():
    """Every listener an authenticator built through authenticator_factory."""
    return []


@pytest.fixture
def authenticator_factory(fake_token_client, presented_urls, created_listeners):
    """Build an Authenticator wired to fakes; pass a listener to control the callback."""
    from pocketauth.domains.oauth.authenticator import Authenticator
    from pocketauth.domains.oauth.fakes import FakeCallbackListener

    def _build(listener=None, **kwargs):
        def _listener_factory():
            instance = listener or FakeCallbackListener()
            created_listeners.append(instance)
            return instance

        kwargs.setdefault("token_client", fake_token_client)
        kwargs.setdefault("listener_factory", _listener_factory)
        kwargs.setdefault("presenter", presented_urls.append)
        return Authenticator(
            "https://pocket.test/v3",
            "consumer-key",
            "http://127.0.0.1:8080/auth/callback",
            **kwargs,
        )

    return _build
