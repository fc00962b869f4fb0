"""Cooperative cancellation tokens for scheduled work.

Work functions are never interrupted by ``Task.cancel()`` mid-call. They
check their token before each external call and stop there instead.
"""

from __future__ import annotations

import asyncio

from driftwatch.errors import RunCancelled


class CancellationToken:
    """A cancel flag that can be observed, awaited and chained."""

    def __init__(self, parent: CancellationToken | None = None) -> None:
        self._parent = parent
        self._event = asyncio.Event()
        self.reason: str | None = None

    def child(self) -> CancellationToken:
        """Derive a token that is cancelled when this one is."""
        return CancellationToken(parent=self)

    def cancel(self, reason: str | None = None) -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    def raise_if_cancelled(self) -> None:
        """Raise ``RunCancelled`` if this token or any ancestor is cancelled."""
        if self.cancelled:
            raise RunCancelled(self._reason() or "run cancelled")

    def _reason(self) -> str | None:
        if self._event.is_set():
            return self.reason
        return self._parent._reason() if self._parent is not None else None

    async def wait(self) -> None:
        """Block until this token or an ancestor is cancelled."""
        if self._parent is None:
            await self._event.wait()
            return
        waiters = {asyncio.ensure_future(self._event.wait()), asyncio.ensure_future(self._parent.wait())}
        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                waiter.cancel()
