"""Login state machine around one messaging client."""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Any

from whatsapp_pod.cancellation import CancellationToken
from whatsapp_pod.client.base import MessagingClient
from whatsapp_pod.client.events import (
    AuthFailed,
    Authenticated,
    ClientEvent,
    CodeIssued,
    Connected,
    Disconnected,
    InboundMessage,
    MessageInfo,
    StreamReset,
)
from whatsapp_pod.client.functions import FunctionSpec
from whatsapp_pod.protocol.errors import (
    CollaboratorError,
    LoginFailed,
    LoginInterrupted,
    LoginTimeout,
    NotLoggedInError,
    PodError,
)
from whatsapp_pod.session.signals import LoginSignal, SignalKind, SignalSlot
from whatsapp_pod.session.state import (
    LoginResult,
    Phase,
    StatusResult,
)

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_TIMEOUT = 65.0


class Session:
    """
    Process-wide login/connection state for one messaging client.

    All reads and writes of phase, pending code and last message go
    through one lock, shared by foreground operations and the client's
    event callbacks (which may run on other threads). ``login`` is
    additionally serialized as a whole so only one attempt runs at a time.
    """

    def __init__(
        self,
        client: MessagingClient,
        login_timeout: float = DEFAULT_LOGIN_TIMEOUT,
        interrupt: CancellationToken | None = None,
    ):
        """
        Initialize session.

        Args:
            client: The messaging client; owned by the session from now on.
            login_timeout: Seconds ``login`` waits for a login event.
            interrupt: Process-level cancellation observed by ``login``.
        """
        self.client = client
        self.login_timeout = login_timeout
        self._interrupt = interrupt or CancellationToken()

        self._lock = threading.RLock()
        self._login_lock = asyncio.Lock()
        self._phase = Phase.NOT_CONNECTED
        self._pending_code: str | None = None
        self._last_message: MessageInfo | None = None
        self._signals = SignalSlot()
        self._connect_task: asyncio.Task[None] | None = None
        self._abandoning = False
        self._closed = False

        client.on_event(self.handle_event)

    # ------------------------------------------------------------------
    # Operations

    async def login(self) -> LoginResult:
        """
        Start or re-poll a login attempt.

        Returns immediately when already logged in or when an attempt is
        in progress. Otherwise starts connecting in the background and
        waits for the first of: login code, success, failure, timeout,
        interrupt.

        Raises:
            LoginFailed: The client reported a failure.
            LoginTimeout: No event arrived in time; the attempt is torn down.
            LoginInterrupted: The process is shutting down.
        """
        async with self._login_lock:
            with self._lock:
                if self._phase is Phase.CONNECTED or self.client.is_logged_in():
                    self._transition(Phase.CONNECTED, "already logged in")
                    return LoginResult(Phase.CONNECTED, message="Already logged in")

                if self._phase.in_progress:
                    if self._phase is Phase.CODE_PENDING and self._pending_code:
                        return LoginResult(
                            self._phase,
                            qr_code=self._pending_code,
                            message="Login pending, scan QR code",
                        )
                    return LoginResult(self._phase, message="Login already in progress")

                self._transition(Phase.CONNECTING, "login requested")
                self._pending_code = None
                self._signals.clear()
                waiter = self._signals.wait()
                self._abandoning = False

            self._connect_task = asyncio.create_task(
                self._connect(),
                name="pod-login-connect",
            )
            return await self._await_outcome(waiter)

    async def logout(self) -> StatusResult:
        """
        Log out and unlink the device.

        The phase becomes LOGGED_OUT before the client is called so a
        disconnect notification racing with the call cannot overwrite it.

        Raises:
            CollaboratorError: If the client's logout failed.
        """
        with self._lock:
            self._transition(Phase.LOGGED_OUT, "logout requested")
        await self._abandon_connect()

        try:
            await self.client.logout()
        except PodError:
            raise
        except Exception as e:
            logger.error(f"Error logging out: {e}")
            raise CollaboratorError(str(e) or type(e).__name__, {"status": "logout-failed"}) from e

        logger.info("Logout successful")
        return StatusResult(Phase.LOGGED_OUT)

    def status(self) -> StatusResult:
        """Snapshot of the session as reported to the parent process."""
        with self._lock:
            return StatusResult(self._phase, self._last_message, qr_code=self._pending_code)

    async def call(self, spec: FunctionSpec, args: list[Any]) -> Any:
        """
        Forward a pass-through function to the client.

        Raises:
            NotLoggedInError: If the client has no authenticated session.
            CollaboratorError: If the client call failed.
        """
        if not self.client.is_logged_in():
            raise NotLoggedInError()
        try:
            return await self.client.call(spec.method, *args)
        except PodError:
            raise
        except Exception as e:
            logger.error(f"Client call {spec.name} failed: {e}")
            raise CollaboratorError.wrap(e) from e

    async def close(self) -> None:
        """Disconnect the client and release its resources."""
        if self._closed:
            return
        self._closed = True

        await self._abandon_connect()
        try:
            await self.client.disconnect()
        except Exception as e:
            logger.error(f"Error disconnecting client: {e}")
        try:
            await self.client.close()
        except Exception as e:
            logger.error(f"Error closing client: {e}")
        logger.info("Session closed")

    # ------------------------------------------------------------------
    # Client events

    def handle_event(self, event: ClientEvent) -> None:
        """
        Apply a client event. Never blocks; safe from any thread.
        """
        logger.debug(f"Received event: {event}")
        with self._lock:
            if isinstance(event, InboundMessage):
                self._last_message = event.info

            elif isinstance(event, CodeIssued):
                if self._phase.in_progress:
                    self._pending_code = event.code
                    self._transition(Phase.CODE_PENDING, "login code issued")
                    self._signals.offer(LoginSignal.code_issued(event.code))
                else:
                    logger.info(f"Ignoring login code in phase {self._phase}")

            elif isinstance(event, Authenticated):
                if event.jid:
                    logger.info(f"Paired as {event.jid}")
                self._mark_connected("pairing succeeded")

            elif isinstance(event, Connected):
                if self.client.is_logged_in():
                    self._mark_connected("connected with stored credentials")
                else:
                    logger.info("Connected, but not logged in yet")

            elif isinstance(event, AuthFailed):
                if self._phase is Phase.LOGGED_OUT:
                    return
                self._transition(Phase.FAILED, event.reason)
                self._signals.offer(LoginSignal.failure(event.reason))

            elif isinstance(event, (StreamReset, Disconnected)):
                if not self._phase.is_terminal:
                    self._transition(Phase.NOT_CONNECTED, type(event).__name__)

    # ------------------------------------------------------------------
    # Internals

    def _transition(self, new_phase: Phase, reason: str) -> None:
        """Move to ``new_phase``. Caller holds ``_lock``."""
        old_phase = self._phase
        if new_phase is not Phase.CODE_PENDING:
            self._pending_code = None
        if old_phase is new_phase:
            return
        self._phase = new_phase
        logger.info(f"Session {old_phase} -> {new_phase} ({reason})")

    def _mark_connected(self, reason: str) -> None:
        if self._phase is Phase.LOGGED_OUT:
            logger.info(f"Ignoring login success after logout ({reason})")
            return
        self._transition(Phase.CONNECTED, reason)
        self._signals.offer(LoginSignal.success())

    async def _connect(self) -> None:
        """Background connect attempt."""
        try:
            await self.client.connect()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._abandoning:
                logger.debug(f"Connect ended after disconnect was requested: {e}")
                return
            logger.error(f"Connection failed: {e}")
            with self._lock:
                if self._phase is not Phase.CONNECTED:
                    self._transition(Phase.FAILED, "connection failed")
                    self._signals.offer(LoginSignal.failure(str(e) or "connection failed"))
            return
        logger.info("Connect returned, waiting for login event")

    async def _await_outcome(self, waiter: Future[LoginSignal]) -> LoginResult:
        signal_future = asyncio.wrap_future(waiter)
        interrupt_task = asyncio.ensure_future(self._interrupt.wait())
        try:
            await asyncio.wait(
                {signal_future, interrupt_task},
                timeout=self.login_timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            interrupt_task.cancel()
            signal = self._signals.release(waiter)

        if signal is not None:
            logger.info(f"Login woke on signal: {signal}")
            return self._apply_signal(signal)

        if self._interrupt.cancelled:
            logger.warning("Login interrupted by shutdown signal")
            await self._abandon_connect()
            raise LoginInterrupted()

        logger.warning(f"Login timed out after {self.login_timeout} seconds waiting for event")
        await self._expire()
        raise LoginTimeout.after(self.login_timeout)

    def _apply_signal(self, signal: LoginSignal) -> LoginResult:
        with self._lock:
            if signal.kind is SignalKind.SUCCESS:
                self._transition(Phase.CONNECTED, "login succeeded")
                return LoginResult(Phase.CONNECTED)

            if signal.kind is SignalKind.FAILURE:
                if self._phase is not Phase.LOGGED_OUT:
                    self._transition(Phase.FAILED, "login failed")
                raise LoginFailed(
                    "login failed",
                    {"reason": signal.reason} if signal.reason else None,
                )

            # A newer event may already have moved the phase on; never regress it.
            if self._phase.in_progress:
                self._pending_code = signal.code
                self._transition(Phase.CODE_PENDING, "login code issued")
            return LoginResult(Phase.CODE_PENDING, qr_code=signal.code, message="Scan QR code")

    async def _expire(self) -> None:
        """Fail a timed-out attempt and tear down the half-open connection."""
        with self._lock:
            if self._phase in (Phase.CONNECTED, Phase.LOGGED_OUT):
                return
            self._transition(Phase.FAILED, "login timed out")
        await self._abandon_connect()
        try:
            await self.client.disconnect()
        except Exception as e:
            logger.error(f"Error disconnecting after login timeout: {e}")

    async def _abandon_connect(self) -> None:
        """Tell the background connect attempt to stop."""
        self._abandoning = True
        task = self._connect_task
        self._connect_task = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
