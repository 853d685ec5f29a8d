"""Bencode framing over the process's binary standard streams."""

from __future__ import annotations

import asyncio
import io
import logging
import threading
from collections import deque
from typing import Any, BinaryIO

from bcoding import bdecode, bencode

from whatsapp_pod.protocol.errors import FramingError
from whatsapp_pod.protocol.messages import Request, Response

logger = logging.getLogger(__name__)


class EndOfStream(Exception):
    """Input closed cleanly between requests."""

    pass


def _text(value: Any) -> str:
    """Normalize a decoded bencode string to text."""
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _field(key: str, value: Any) -> str | bytes:
    # Undecodable args stay raw so the invoke fails on its own
    if key == "args" and isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return _text(value)


class PodCodec:
    """
    Reads one request and writes one response at a time.

    Each message is a single bencoded dictionary. Responses are written in
    full and flushed before returning so the next request is only read once
    the parent has the whole reply.
    """

    def __init__(self, input: BinaryIO, output: BinaryIO):
        if not hasattr(input, "peek"):
            input = io.BufferedReader(input)  # type: ignore[arg-type]
        self._input = input
        self._output = output
        self._write_lock = threading.Lock()

    def read_request(self) -> Request:
        """
        Block until the next request is available.

        Raises:
            EndOfStream: If the input closed before a new message began.
            FramingError: If the bytes do not decode to a request dict.
        """
        if not self._input.peek(1):
            raise EndOfStream()

        try:
            message = bdecode(self._input)
        except Exception as e:
            raise FramingError(f"Malformed bencode input: {e}") from e

        if not isinstance(message, dict):
            raise FramingError(
                f"Expected a bencode dictionary, got {type(message).__name__}"
            )

        fields = {}
        for key, value in message.items():
            if isinstance(value, (list, dict)):
                continue
            name = _text(key)
            fields[name] = _field(name, value)

        return Request.from_dict(fields)

    def write_response(self, response: Response) -> None:
        """Encode and flush one response."""
        self.write(response.to_dict())

    def write(self, message: dict[str, Any]) -> None:
        """Encode and flush one raw message dict."""
        data = bencode(message)
        with self._write_lock:
            self._output.write(data)
            self._output.flush()


class RequestReader:
    """
    Reads requests on a daemon thread, one per demand.

    The event loop stays free while a read blocks, and a read is only
    issued when the dispatcher asks for the next request, so requests are
    never read ahead of their responses. The thread is a daemon so a read
    blocked on a silent parent never holds up process exit.
    """

    def __init__(self, codec: PodCodec):
        self._codec = codec
        self._demand: deque[tuple[asyncio.AbstractEventLoop, asyncio.Future[Request]]] = deque()
        self._cond = threading.Condition()
        self._thread: threading.Thread | None = None
        self._final_error: Exception | None = None

    def start(self) -> None:
        """Start the reader thread if it is not running yet."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run,
            name="pod-request-reader",
            daemon=True,
        )
        self._thread.start()

    async def next(self) -> Request:
        """
        Read the next request without blocking the event loop.

        Raises:
            EndOfStream: On clean end of input.
            FramingError: On undecodable input.
        """
        if self._final_error is not None:
            raise self._final_error

        self.start()
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Request] = loop.create_future()
        with self._cond:
            self._demand.append((loop, future))
            self._cond.notify()
        return await future

    def _run(self) -> None:
        while True:
            with self._cond:
                while not self._demand:
                    self._cond.wait()
                loop, future = self._demand.popleft()

            try:
                request = self._codec.read_request()
            except (EndOfStream, FramingError) as e:
                # Stream position is gone either way; no further reads.
                self._final_error = e
                self._deliver(loop, future, None, e)
                return
            except Exception as e:
                logger.exception("Unexpected error reading request")
                self._deliver(loop, future, None, e)
            else:
                self._deliver(loop, future, request, None)

    @staticmethod
    def _deliver(loop, future, result, error) -> None:
        try:
            loop.call_soon_threadsafe(_resolve, future, result, error)
        except RuntimeError:
            # Loop already closed during process exit.
            pass


def _resolve(future, result, error) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)
