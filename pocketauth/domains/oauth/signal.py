"""One-shot notification between the callback listener and the authenticator.

The signal is a single slot: it is fired at most once and consumed by at most
one waiter. Once fired or closed, further ``fire()`` calls are rejected and
return ``False`` instead of raising, so a duplicate browser callback can never
take down the listener.
"""

import asyncio
from typing import Optional


class AuthorizationSignal:
    """Single-use "the resource owner approved access" event."""

    def __init__(self) -> None:
        """Create an unfired, open signal bound to the running loop on first use."""
        self._future: Optional[asyncio.Future] = None
        self._fired = False
        self._closed = False

    def _get_future(self) -> asyncio.Future:
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
        return self._future

    @property
    def fired(self) -> bool:
        """True once the signal has been fired."""
        return self._fired

    @property
    def closed(self) -> bool:
        """True once no further ``fire()`` will be accepted."""
        return self._closed

    def fire(self) -> bool:
        """Deliver the notification.

        Returns:
            True if this call delivered it, False if the slot was already
            fired or closed.
        """
        # No await between the check and the set: atomic on the event loop.
        if self._fired or self._closed:
            return False
        self._fired = True
        future = self._get_future()
        if not future.done():
            future.set_result(None)
        return True

    def close(self) -> None:
        """Reject any further ``fire()``. Does not wake a waiter."""
        self._closed = True

    async def wait(self) -> None:
        """Block until the signal fires. Returns immediately if it already has."""
        if self._fired:
            return
        await asyncio.shield(self._get_future())
