"""
Cooperative cancellation for waits.

A CancellationToken is a flag shared between the code that waits on a
prediction and whoever may want to stop that wait. Waiters query it at each
suspension point instead of relying on task cancellation.
"""
from __future__ import annotations

import asyncio
from typing import Optional


class CancellationToken:
    """
    Shareable cancellation flag backed by an asyncio.Event.

    The token may be created outside a running event loop; the Event is
    created on first use by a waiter, inside the loop that awaits it.

    Usage:
        token = CancellationToken()
        task = asyncio.create_task(client.run("owner/model", input, cancel_token=token))
        ...
        token.cancel()
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._event: Optional[asyncio.Event] = None

    def _get_event(self) -> asyncio.Event:
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()
        return self._event

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    async def wait(self) -> None:
        """Block until cancellation is requested."""
        await self._get_event().wait()

    async def sleep(self, seconds: float) -> bool:
        """
        Sleep for ``seconds`` unless cancelled first.

        Returns:
            True if cancellation was requested before or during the sleep
        """
        if self.is_cancelled:
            return True
        try:
            await asyncio.wait_for(self._get_event().wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"
