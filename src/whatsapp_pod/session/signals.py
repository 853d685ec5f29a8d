"""Single-slot handoff of login signals from client events to ``login``."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, InvalidStateError
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class SignalKind(Enum):
    CODE = "code"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class LoginSignal:
    """What woke a waiting login."""

    kind: SignalKind
    code: str | None = None
    reason: str | None = None

    @classmethod
    def code_issued(cls, code: str) -> "LoginSignal":
        return cls(SignalKind.CODE, code=code)

    @classmethod
    def success(cls) -> "LoginSignal":
        return cls(SignalKind.SUCCESS)

    @classmethod
    def failure(cls, reason: str) -> "LoginSignal":
        return cls(SignalKind.FAILURE, reason=reason)

    def __str__(self) -> str:
        return f"{self.kind.value}" + (f"({self.code or self.reason})" if self.code or self.reason else "")


class SignalSlot:
    """
    Holds at most one unread login signal.

    ``offer`` never blocks and may be called from any thread. The first
    signal after a ``clear`` is kept for the waiter; later ones are
    dropped (and logged) until it is consumed. Session phase tracks the
    most recent event independently, so status queries still see it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value: LoginSignal | None = None
        self._waiter: Future[LoginSignal] | None = None

    def offer(self, signal: LoginSignal) -> bool:
        """
        Hand a signal over without blocking.

        Returns:
            True if the signal was delivered or stored, False if dropped.
        """
        with self._lock:
            if self._waiter is not None and not self._waiter.done():
                try:
                    self._waiter.set_result(signal)
                except InvalidStateError:
                    pass
                else:
                    self._waiter = None
                    return True
            if self._value is not None:
                logger.debug(f"Signal slot full, dropping {signal} (holding {self._value})")
                return False
            self._value = signal
            return True

    def clear(self) -> None:
        """Drop any unread signal."""
        with self._lock:
            if self._value is not None:
                logger.debug(f"Discarding stale signal {self._value}")
            self._value = None

    def wait(self) -> Future[LoginSignal]:
        """
        Register the single waiter.

        The returned future completes with the stored signal immediately
        if one is unread, otherwise with the next one offered.
        """
        future: Future[LoginSignal] = Future()
        with self._lock:
            if self._waiter is not None and not self._waiter.done():
                self._waiter.cancel()
            if self._value is not None:
                future.set_result(self._value)
                self._value = None
            else:
                self._waiter = future
        return future

    def release(self, future: Future[LoginSignal]) -> LoginSignal | None:
        """
        Stop waiting on ``future``.

        Returns:
            The signal if one had already been delivered, else None.
        """
        with self._lock:
            if self._waiter is future:
                self._waiter = None
            if future.done() and not future.cancelled():
                return future.result()
            future.cancel()
            return None
