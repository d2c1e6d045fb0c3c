"""Tests for the pocketauth CLI."""

import asyncio
import os
import signal

import aiohttp
import pytest

from pocketauth import __main__ as cli
from pocketauth.core.exceptions import RequestTokenError
from pocketauth.domains.oauth.authenticator import Authenticator
from pocketauth.domains.oauth.callback_listener import CallbackListener
from pocketauth.domains.oauth.fakes import FakeCallbackListener, FakeTokenExchangeClient
from pocketauth.domains.oauth.signal import AuthorizationSignal


class _StubAuthenticatorFactory:
    """Stands in for Authenticator in the CLI module; wires the real class to fakes."""

    def __init__(self, token_client=None, listener_factory=FakeCallbackListener):
        self.token_client = token_client or FakeTokenExchangeClient()
        self.listener_factory = listener_factory
        self.configs = []

    def from_config(self, config, listener_config=None):
        self.configs.append(config)
        return Authenticator(
            config.host,
            config.consumer_key,
            config.redirect_uri,
            authorize_url=config.authorize_url,
            token_client=self.token_client,
            listener_factory=self.listener_factory,
            presenter=lambda url: None,
        )


def test_command_is_required():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


def test_login_flags_are_optional():
    args = cli.build_parser().parse_args(["login"])
    assert args.consumer_key is None
    assert args.open_browser is None
    assert args.timeout is None


def test_login_missing_consumer_key_exits_with_configuration_error(capsys):
    assert cli.main(["login", "--consumer-key", ""]) == cli.EXIT_CONFIGURATION_ERROR
    assert "missing consumer key" in capsys.readouterr().err


def test_login_prints_credentials(monkeypatch, capsys):
    factory = _StubAuthenticatorFactory()
    monkeypatch.setattr(cli, "Authenticator", factory)

    exit_code = cli.main(["login", "--consumer-key", "cli-key", "--timeout", "5"])

    assert exit_code == cli.EXIT_OK
    out = capsys.readouterr().out
    assert "Authorization granted!" in out
    assert "Access token: access-token" in out
    assert "Username: reader" in out
    assert factory.configs[0].consumer_key == "cli-key"
    assert factory.token_client.calls_for("obtain_request_token")[0][1] == "cli-key"


def test_login_timeout_exit_code(monkeypatch, capsys):
    factory = _StubAuthenticatorFactory(listener_factory=FakeCallbackListener.never_called_back)
    monkeypatch.setattr(cli, "Authenticator", factory)

    assert cli.main(["login", "--timeout", "0.05"]) == cli.EXIT_AUTHORIZATION_FAILED
    assert "timed out" in capsys.readouterr().err


def test_login_remote_failure_exit_code(monkeypatch, capsys):
    token_client = FakeTokenExchangeClient()
    token_client.fail_request_token(RequestTokenError("could not make request"))
    monkeypatch.setattr(cli, "Authenticator", _StubAuthenticatorFactory(token_client))

    assert cli.main(["login"]) == cli.EXIT_AUTHORIZATION_FAILED
    assert "obtain request token" in capsys.readouterr().err


async def test_listen_exits_after_one_callback(monkeypatch, capsys):
    created = []

    def _listener(config):
        listener = CallbackListener(config)
        created.append(listener)
        return listener

    monkeypatch.setattr(cli, "CallbackListener", _listener)
    args = cli.build_parser().parse_args(["listen", "--host", "127.0.0.1", "--port", "0"])

    task = asyncio.create_task(cli.cmd_listen(args))
    for _ in range(100):
        if created and created[0].is_running:
            break
        await asyncio.sleep(0.01)

    async with aiohttp.ClientSession() as session:
        async with session.get(created[0].url) as resp:
            assert resp.status == 200

    assert await asyncio.wait_for(task, timeout=5) == cli.EXIT_OK
    assert "Authorization callback received." in capsys.readouterr().out


async def test_listen_port_in_use(capsys):
    holder = CallbackListener(cli.ListenerConfig(host="127.0.0.1", port=0))
    await holder.start(AuthorizationSignal())
    try:
        args = cli.build_parser().parse_args(
            ["listen", "--host", "127.0.0.1", "--port", str(holder.port)]
        )
        assert await cli.cmd_listen(args) == cli.EXIT_AUTHORIZATION_FAILED
        assert "Could not start callback listener" in capsys.readouterr().err
    finally:
        await holder.stop()


async def _wait_until(predicate, attempts: int = 200) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0.01)
    raise AssertionError("condition not reached")


async def test_login_sigint_cancels_attempt_and_stops_listener(monkeypatch, capsys):
    created = []

    def _listener():
        listener = FakeCallbackListener.never_called_back()
        created.append(listener)
        return listener

    monkeypatch.setattr(cli, "Authenticator", _StubAuthenticatorFactory(listener_factory=_listener))
    args = cli.build_parser().parse_args(["login", "--timeout", "30"])

    task = asyncio.create_task(cli.cmd_login(args))
    await _wait_until(lambda: created and created[0].is_running)

    os.kill(os.getpid(), signal.SIGINT)

    assert await asyncio.wait_for(task, timeout=5) == cli.EXIT_INTERRUPTED
    assert created[0].is_running is False
    assert created[0].stop_calls == 1
    assert "Authorization interrupted." in capsys.readouterr().err


async def test_listen_sigint_stops_without_callback(monkeypatch):
    created = []

    def _listener(config):
        listener = CallbackListener(config)
        created.append(listener)
        return listener

    monkeypatch.setattr(cli, "CallbackListener", _listener)
    args = cli.build_parser().parse_args(["listen", "--host", "127.0.0.1", "--port", "0"])

    task = asyncio.create_task(cli.cmd_listen(args))
    await _wait_until(lambda: created and created[0].is_running)
    port = created[0].port

    os.kill(os.getpid(), signal.SIGINT)

    assert await asyncio.wait_for(task, timeout=5) == cli.EXIT_INTERRUPTED
    assert created[0].is_running is False

    # The port is free again.
    holder = CallbackListener(cli.ListenerConfig(host="127.0.0.1", port=port))
    await holder.start(AuthorizationSignal())
    await holder.stop()
