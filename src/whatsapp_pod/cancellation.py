"""Process-level cancellation token threaded into long waits."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)

# Type alias for cancellation callbacks
CancellationCallback = Callable[[str | None], None]


class CancellationToken:
    """
    Signals that the process has been asked to stop.

    The token is set from a signal handler (or a test) and observed by
    waits such as an in-flight login. It only ever moves from active to
    cancelled.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None
        self._callbacks: list[CancellationCallback] = []

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """
        Request cancellation.

        Must be called from the event loop thread. Repeat calls are ignored.
        """
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        logger.info(f"Cancellation requested: {reason}")

        for callback in self._callbacks:
            try:
                callback(reason)
            except Exception as e:
                logger.exception(f"Cancellation callback error: {e}")

    def on_cancelled(self, callback: CancellationCallback) -> None:
        """
        Register a callback run once when the token is cancelled.

        Args:
            callback: Receives the cancellation reason.
        """
        self._callbacks.append(callback)

    def remove_callback(self, callback: CancellationCallback) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    async def wait(self) -> str | None:
        """Block until cancelled; returns the reason."""
        await self._event.wait()
        return self._reason
