"""Pytest configuration and fixtures."""

import asyncio
import io
import threading
from typing import Any

import pytest
from bcoding import bdecode, bencode

from whatsapp_pod.cancellation import CancellationToken
from whatsapp_pod.client.base import MessagingClient
from whatsapp_pod.client.events import ClientEvent
from whatsapp_pod.session.session import Session

# Async test support; tests opt in with @pytest.mark.asyncio
pytest_plugins = ["pytest_asyncio"]


class FakeClient(MessagingClient):
    """
    Scriptable messaging client.

    ``script`` events are emitted once ``connect`` has returned, either on
    the event loop or, with ``emit_from_thread``, from a separate thread
    the way a real client's network pump would.
    """

    def __init__(
        self,
        script: list[ClientEvent] | None = None,
        logged_in: bool = False,
        connect_error: Exception | None = None,
        logout_error: Exception | None = None,
        emit_from_thread: bool = False,
        emit_delay: float = 0.0,
    ):
        super().__init__()
        self.script = list(script or [])
        self.logged_in = logged_in
        self.connect_error = connect_error
        self.logout_error = logout_error
        self.emit_from_thread = emit_from_thread
        self.emit_delay = emit_delay

        self.connect_calls = 0
        self.disconnect_calls = 0
        self.logout_calls = 0
        self.close_calls = 0
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.on_logout_emit: list[ClientEvent] = []

    def emit(self, event: ClientEvent) -> None:
        self._emit_event(event)

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_error is not None:
            await asyncio.sleep(0)
            raise self.connect_error
        if not self.script:
            return
        script, self.script = self.script, []
        if self.emit_from_thread:
            threading.Thread(target=self._pump, args=(script,), daemon=True).start()
        else:
            asyncio.get_running_loop().call_later(self.emit_delay, self._pump_now, script)

    def _pump(self, script: list[ClientEvent]) -> None:
        threading.Event().wait(self.emit_delay)
        self._pump_now(script)

    def _pump_now(self, script: list[ClientEvent]) -> None:
        for event in script:
            self._emit_event(event)

    def is_logged_in(self) -> bool:
        return self.logged_in

    async def disconnect(self) -> None:
        self.disconnect_calls += 1

    async def logout(self) -> None:
        self.logout_calls += 1
        for event in self.on_logout_emit:
            self._emit_event(event)
        if self.logout_error is not None:
            raise self.logout_error
        self.logged_in = False

    async def close(self) -> None:
        self.close_calls += 1

    async def send_message(self, phone: str, message: str) -> dict[str, Any]:
        self.calls.append(("send_message", (phone, message)))
        return {"success": True, "message": f"Message sent to {phone}"}

    async def get_groups(self) -> dict[str, Any]:
        self.calls.append(("get_groups", ()))
        return {
            "success": True,
            "groups": [{"jid": "123@g.us", "name": "Family", "participants": ["1@s.whatsapp.net"]}],
        }

    async def set_presence(self, is_online: bool) -> dict[str, Any]:
        self.calls.append(("set_presence", (is_online,)))
        if not is_online:
            raise RuntimeError("presence service unavailable")
        return {"success": True}


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def interrupt():
    return CancellationToken()


@pytest.fixture
def make_session(interrupt):
    """Build a session around a client with a short login timeout."""

    def factory(client: MessagingClient, login_timeout: float = 1.0) -> Session:
        return Session(client, login_timeout=login_timeout, interrupt=interrupt)

    return factory


@pytest.fixture
def encode_requests():
    """Encode request dicts into a peekable input stream."""

    def encode(*messages: dict[str, Any], trailer: bytes = b"") -> io.BufferedReader:
        data = b"".join(bencode(message) for message in messages) + trailer
        return io.BufferedReader(io.BytesIO(data))

    return encode


def _normalize(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    if isinstance(value, dict):
        return {_normalize(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_normalize(v) for v in value]
    return value


@pytest.fixture
def decode_responses():
    """Decode every bencoded message written to an output stream."""

    def decode(output: io.BytesIO) -> list[dict[str, Any]]:
        data = output.getvalue()
        stream = io.BytesIO(data)
        messages = []
        while stream.tell() < len(data):
            messages.append(_normalize(bdecode(stream)))
        return messages

    return decode
