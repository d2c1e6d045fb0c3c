"""Local HTTP server that catches the browser redirect after user approval.

The listener serves a single GET route. The first request that reaches it
fires the authorization signal, closes it, and makes the listener shut itself
down; it exists only for the duration of one authorization attempt.

Follows the same aiohttp runner pattern as a start/stop control server.
"""

import asyncio
from typing import Optional

from aiohttp import web

from pocketauth.core.exceptions import ListenerShutdownError
from pocketauth.core.logging import ContextualLogger, logger
from pocketauth.domains.oauth.config import ListenerConfig
from pocketauth.domains.oauth.protocols import CallbackListenerProtocol
from pocketauth.domains.oauth.signal import AuthorizationSignal


class CallbackListener(CallbackListenerProtocol):
    """Lightweight aiohttp server serving one authorization callback."""

    def __init__(
        self,
        config: Optional[ListenerConfig] = None,
        logger: ContextualLogger = logger,
    ) -> None:
        """Initialize the listener; nothing is bound until ``start``."""
        self._config = config or ListenerConfig.from_settings()
        self._logger = logger.with_prefix("Callback listener: ")
        self._runner: web.AppRunner | None = None
        self._signal: AuthorizationSignal | None = None
        self._stop_lock = asyncio.Lock()
        self._shutdown_task: asyncio.Task | None = None

    @property
    def config(self) -> ListenerConfig:
        """The listener configuration."""
        return self._config

    @property
    def is_running(self) -> bool:
        """True while the listener holds its port."""
        return self._runner is not None

    @property
    def port(self) -> Optional[int]:
        """The bound port, which differs from the configured one when that is 0."""
        if self._runner is None or not self._runner.addresses:
            return None
        return self._runner.addresses[0][1]

    @property
    def url(self) -> Optional[str]:
        """Full callback URL while running."""
        if self.port is None:
            return None
        return f"http://{self._config.host}:{self.port}{self._config.path}"

    async def start(self, signal: AuthorizationSignal) -> None:
        """Bind the port and start serving the callback route.

        Raises:
            RuntimeError: the listener is already running
            OSError: the port could not be bound
        """
        if self._runner is not None:
            raise RuntimeError("callback listener already running")
        self._shutdown_task = None

        app = web.Application()
        app.router.add_get(self._config.path, self._handle_callback)

        runner = web.AppRunner(
            app,
            access_log=None,
            shutdown_timeout=self._config.shutdown_grace_seconds,
        )
        await runner.setup()

        self._signal = signal
        site = web.TCPSite(runner, self._config.host, self._config.port)
        try:
            await site.start()
        except OSError:
            self._signal = None
            await runner.cleanup()
            raise

        self._runner = runner
        self._logger.info(f"listening on {self.url}")

    async def stop(self) -> None:
        """Stop serving and release the port.

        Safe to call repeatedly, concurrently and before ``start``.

        Raises:
            ListenerShutdownError: the server did not stop cleanly within the grace period
        """
        async with self._stop_lock:
            runner = self._runner
            if runner is None:
                return
            self._runner = None
            self._signal = None

            try:
                # aiohttp bounds the graceful part; the outer bound covers a stuck cleanup.
                await asyncio.wait_for(
                    runner.cleanup(), timeout=self._config.shutdown_grace_seconds * 2
                )
            except Exception as e:
                raise ListenerShutdownError(f"could not shutdown callback listener: {e}") from e

            self._logger.info("stopped")

    async def serve(
        self, signal: AuthorizationSignal, shutdown: asyncio.Event
    ) -> Optional[ListenerShutdownError]:
        """Run until the callback fires or ``shutdown`` is set, then stop.

        A failed stop is logged and returned rather than raised.

        Returns:
            None on a clean stop, the ListenerShutdownError otherwise.
        """
        await self.start(signal)

        fired = asyncio.ensure_future(signal.wait())
        requested = asyncio.ensure_future(shutdown.wait())
        try:
            await asyncio.wait({fired, requested}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            fired.cancel()
            requested.cancel()
            if not signal.fired:
                self._logger.info("shutdown requested before any callback was received")
            error = await self.wait_stopped()
            if error is None:
                error = await self._stop_and_report()

        return error

    async def wait_stopped(self) -> Optional[ListenerShutdownError]:
        """Wait for the shutdown that follows a callback, if one was scheduled.

        Returns:
            The error of that shutdown, None when it was clean or never scheduled.
        """
        task = self._shutdown_task
        if task is None:
            return None
        return await asyncio.shield(task)

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    async def _handle_callback(self, request: web.Request) -> web.Response:
        """Turn the browser redirect into the authorization signal."""
        signal = self._signal
        if signal is not None and signal.fire():
            signal.close()
            self._logger.info("authorization callback received")
            self._shutdown_task = asyncio.create_task(self._shutdown_after_callback())
        else:
            self._logger.debug("duplicate callback ignored")

        return web.Response(text=self._config.confirmation_body)

    async def _shutdown_after_callback(self) -> Optional[ListenerShutdownError]:
        """Stop the listener once the callback was served."""
        return await self._stop_and_report()

    async def _stop_and_report(self) -> Optional[ListenerShutdownError]:
        """Stop, logging a shutdown failure instead of raising it."""
        try:
            await self.stop()
        except ListenerShutdownError as e:
            self._logger.error(str(e))
            return e
        return None
