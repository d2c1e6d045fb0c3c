"""Fake callback listener for testing."""

import asyncio
from typing import Optional

from pocketauth.core.exceptions import ListenerShutdownError
from pocketauth.domains.oauth.signal import AuthorizationSignal


class FakeCallbackListener:
    """In-memory fake for CallbackListenerProtocol.

    By default the callback arrives as soon as the listener starts. Use
    ``never_called_back`` to simulate a user who never approves, and
    ``callback_after`` to deliver it with a delay.
    """

    def __init__(
        self,
        *,
        auto_callback: bool = True,
        callback_delay: float = 0.0,
        stop_error: Optional[Exception] = None,
        start_error: Optional[Exception] = None,
    ) -> None:
        self._auto_callback = auto_callback
        self._callback_delay = callback_delay
        self._stop_error = stop_error
        self._start_error = start_error
        self._signal: Optional[AuthorizationSignal] = None
        self._callback_task: Optional[asyncio.Task] = None
        self.running = False
        self.start_calls = 0
        self.stop_calls = 0

    @classmethod
    def never_called_back(cls) -> "FakeCallbackListener":
        return cls(auto_callback=False)

    @classmethod
    def callback_after(cls, delay: float) -> "FakeCallbackListener":
        return cls(callback_delay=delay)

    @property
    def is_running(self) -> bool:
        return self.running

    async def start(self, signal: AuthorizationSignal) -> None:
        self.start_calls += 1
        if self._start_error:
            raise self._start_error
        self._signal = signal
        self.running = True
        if self._auto_callback:
            self._callback_task = asyncio.create_task(self._deliver())

    def deliver_callback(self) -> bool:
        """Simulate a browser hitting the callback route."""
        if self._signal is None:
            return False
        delivered = self._signal.fire()
        self._signal.close()
        return delivered

    async def stop(self) -> None:
        self.stop_calls += 1
        if self._callback_task and not self._callback_task.done():
            self._callback_task.cancel()
        self.running = False
        if self._stop_error:
            raise ListenerShutdownError(str(self._stop_error)) from self._stop_error

    async def _deliver(self) -> None:
        if self._callback_delay:
            await asyncio.sleep(self._callback_delay)
        self.deliver_callback()
