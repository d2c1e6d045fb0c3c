"""CLI entry point for pocketauth.

Usage:
    python -m pocketauth login [--consumer-key KEY] [--timeout SECONDS] [--open-browser]
    python -m pocketauth listen [--port PORT] [--path PATH]

Defaults come from POCKET_* environment variables (see pocketauth.core.config).
SIGINT/SIGTERM cancel a running attempt; the callback listener is stopped and
its port released before exiting.
"""

import argparse
import asyncio
import dataclasses
import signal
import sys
from typing import Callable, Optional

from pocketauth.core.exceptions import (
    AccessTokenError,
    AuthorizationTimeoutError,
    ConfigurationError,
    RequestTokenError,
)
from pocketauth.core.logging import configure_logging, logger
from pocketauth.domains.oauth.authenticator import Authenticator
from pocketauth.domains.oauth.callback_listener import CallbackListener
from pocketauth.domains.oauth.config import AuthenticatorConfig, ListenerConfig
from pocketauth.domains.oauth.signal import AuthorizationSignal

EXIT_OK = 0
EXIT_CONFIGURATION_ERROR = 1
EXIT_AUTHORIZATION_FAILED = 2
EXIT_INTERRUPTED = 130

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _install_signal_handlers(on_signal: Callable[[int], None]) -> None:
    loop = asyncio.get_running_loop()
    for signum in SHUTDOWN_SIGNALS:
        try:
            loop.add_signal_handler(signum, on_signal, signum)
        except NotImplementedError:
            # Windows event loops: Ctrl+C still arrives as KeyboardInterrupt.
            pass


def _remove_signal_handlers() -> None:
    loop = asyncio.get_running_loop()
    for signum in SHUTDOWN_SIGNALS:
        try:
            loop.remove_signal_handler(signum)
        except NotImplementedError:
            pass


def _overrides(args: argparse.Namespace, mapping: dict[str, str]) -> dict:
    """Collect CLI values that were actually given, keyed by config field."""
    values = {}
    for arg_name, field_name in mapping.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            values[field_name] = value
    return values


async def cmd_login(args: argparse.Namespace) -> int:
    """Run the handshake and print the access token and username."""
    config = dataclasses.replace(
        AuthenticatorConfig.from_settings(),
        **_overrides(
            args,
            {
                "host": "host",
                "consumer_key": "consumer_key",
                "redirect_uri": "redirect_uri",
                "authorize_url": "authorize_url",
                "open_browser": "open_browser",
            },
        ),
    )

    try:
        authenticator = Authenticator.from_config(config, ListenerConfig.from_settings())
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR

    interrupted = False

    async with authenticator:
        attempt = asyncio.ensure_future(authenticator.authenticate(timeout=args.timeout))

        def on_signal(signum: int) -> None:
            nonlocal interrupted
            logger.info(f"Received signal {signum}, cancelling authorization...")
            interrupted = True
            attempt.cancel()

        _install_signal_handlers(on_signal)
        try:
            access_token, username = await attempt
        except asyncio.CancelledError:
            if not interrupted:
                raise
            print("Authorization interrupted.", file=sys.stderr)
            return EXIT_INTERRUPTED
        except AuthorizationTimeoutError as e:
            print(f"Authorization timed out: {e}", file=sys.stderr)
            return EXIT_AUTHORIZATION_FAILED
        except (RequestTokenError, AccessTokenError, OSError) as e:
            print(f"Authorization failed: {e}", file=sys.stderr)
            return EXIT_AUTHORIZATION_FAILED
        finally:
            _remove_signal_handlers()

    print("Authorization granted!")
    print(f"Access token: {access_token}")
    print(f"Username: {username}")
    return EXIT_OK


async def cmd_listen(args: argparse.Namespace) -> int:
    """Serve the callback route standalone until one callback or a shutdown signal."""
    config = dataclasses.replace(
        ListenerConfig.from_settings(),
        **_overrides(args, {"listen_host": "host", "port": "port", "path": "path"}),
    )
    listener = CallbackListener(config)
    notification = AuthorizationSignal()
    shutdown = asyncio.Event()

    def on_signal(signum: int) -> None:
        logger.info(f"Received signal {signum}, shutting down...")
        shutdown.set()

    _install_signal_handlers(on_signal)
    try:
        error = await listener.serve(notification, shutdown)
    except OSError as e:
        print(f"Could not start callback listener: {e}", file=sys.stderr)
        return EXIT_AUTHORIZATION_FAILED
    finally:
        _remove_signal_handlers()

    if error is not None:
        print(f"Callback listener shutdown failed: {error}", file=sys.stderr)
        return EXIT_AUTHORIZATION_FAILED
    if notification.fired:
        print("Authorization callback received.")
        return EXIT_OK
    return EXIT_INTERRUPTED


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="pocketauth",
        description="Obtain an access token through the browser authorization handshake",
    )
    parser.add_argument("--log-level", help="Logging level (or set POCKET_LOG_LEVEL env var)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # login subcommand
    login_parser = subparsers.add_parser(
        "login",
        help="Run the full handshake and print the access token",
    )
    login_parser.add_argument("--host", help="Remote API base URL (or set POCKET_HOST)")
    login_parser.add_argument(
        "--consumer-key", help="Application consumer key (or set POCKET_CONSUMER_KEY)"
    )
    login_parser.add_argument(
        "--redirect-uri", help="Callback URL for the browser (or set POCKET_REDIRECT_URI)"
    )
    login_parser.add_argument(
        "--authorize-url", help="Authorization page URL (or set POCKET_AUTHORIZE_URL)"
    )
    login_parser.add_argument(
        "--timeout",
        type=float,
        help="Seconds to wait for approval, capped by POCKET_AUTHORIZATION_TIMEOUT_SECONDS",
    )
    login_parser.add_argument(
        "--open-browser",
        action="store_true",
        default=None,
        help="Open the authorization URL in the default browser",
    )
    login_parser.set_defaults(func=cmd_login)

    # listen subcommand
    listen_parser = subparsers.add_parser(
        "listen",
        help="Serve the callback route until one callback arrives (debugging redirects)",
    )
    listen_parser.add_argument(
        "--host", dest="listen_host", help="Interface to bind (or set POCKET_CALLBACK_HOST)"
    )
    listen_parser.add_argument(
        "--port", type=int, help="Port to bind (or set POCKET_CALLBACK_PORT)"
    )
    listen_parser.add_argument("--path", help="Callback path (or set POCKET_CALLBACK_PATH)")
    listen_parser.set_defaults(func=cmd_listen)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
