"""Read, route and answer pod requests."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from whatsapp_pod.client.functions import (
    DEFAULT_NAMESPACE,
    FunctionKind,
    build_manifest,
    lookup,
)
from whatsapp_pod.protocol.codec import EndOfStream, PodCodec, RequestReader
from whatsapp_pod.protocol.errors import (
    FramingError,
    InitializationError,
    PodError,
    UnknownFunctionError,
    UnknownOperationError,
    UnsupportedOperationError,
)
from whatsapp_pod.protocol.messages import (
    CapabilityManifest,
    ErrorResult,
    InvokeResult,
    Op,
    QualifiedName,
    Request,
    Response,
    decode_args,
)

if TYPE_CHECKING:
    from whatsapp_pod.session.session import Session

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FRAMING_ERROR = 1

# Builds the session on first invoke; may be sync or async
SessionFactory = Callable[[], "Session | Awaitable[Session]"]


class Dispatcher:
    """
    The pod's request loop.

    Reads one request, answers it, and only then reads the next. Owns the
    session, which is created on the first ``invoke`` that needs it. A
    failure to create it is remembered and reported for every later
    invoke without retrying.
    """

    def __init__(
        self,
        codec: PodCodec,
        session_factory: SessionFactory,
        namespace: str = DEFAULT_NAMESPACE,
    ):
        """
        Initialize dispatcher.

        Args:
            codec: Wire codec bound to the process streams.
            session_factory: Builds the session and its messaging client.
            namespace: Namespace advertised by ``describe``.
        """
        self.namespace = namespace
        self.manifest: CapabilityManifest = build_manifest(namespace)

        self._codec = codec
        self._reader = RequestReader(codec)
        self._session_factory = session_factory
        self._session: Session | None = None
        self._init_error: InitializationError | None = None
        self._stopping = False
        self._read_task: asyncio.Task[Request] | None = None

    @property
    def session(self) -> "Session | None":
        """The session, if it has been created."""
        return self._session

    async def run(self) -> int:
        """
        Serve requests until end of input, ``shutdown`` or corrupt input.

        Returns:
            Process exit code.
        """
        logger.info("Starting read loop")
        try:
            while True:
                if self._stopping:
                    logger.info("Stop requested, exiting")
                    return EXIT_OK

                self._read_task = asyncio.ensure_future(self._reader.next())
                try:
                    request = await self._read_task
                except asyncio.CancelledError:
                    if not self._stopping:
                        raise
                    logger.info("Stop requested while idle, exiting")
                    return EXIT_OK
                except EndOfStream:
                    logger.info("Received EOF from stdin, exiting")
                    return EXIT_OK
                except FramingError as e:
                    logger.error(f"Error reading message: {e}")
                    return EXIT_FRAMING_ERROR
                except Exception:
                    logger.exception("Error reading from stdin")
                    return EXIT_FRAMING_ERROR
                finally:
                    self._read_task = None

                logger.info(f"Received {request}")
                response = await self.handle(request)
                if response is None:
                    logger.info("Received shutdown op, cleaning up and exiting")
                    return EXIT_OK
                self._write(response)
        finally:
            await self.close()

    def stop(self) -> None:
        """
        Ask the loop to exit.

        A request being handled is still answered; an idle read is
        abandoned.
        """
        self._stopping = True
        if self._read_task is not None and not self._read_task.done():
            self._read_task.cancel()

    async def handle(self, request: Request) -> Response | None:
        """
        Produce the response for one request.

        Returns:
            The response, or None for ``shutdown`` which is never answered.
        """
        try:
            op = Op(request.op)
        except ValueError:
            logger.warning(f"Unknown op received: {request.op}")
            return ErrorResult.from_error(request.id, UnknownOperationError.for_op(request.op))

        if op is Op.DESCRIBE:
            return self.manifest

        if op is Op.SHUTDOWN:
            return None

        try:
            value = await self.invoke(request.var, request.args)
            response = InvokeResult.encode(request.id, value)
        except PodError as e:
            logger.warning(f"Invoke error for {request.var}: {e.message}")
            return ErrorResult.from_error(request.id, e)
        except Exception as e:
            logger.exception(f"Handler error for {request.var}")
            return ErrorResult.from_error(request.id, PodError(str(e) or type(e).__name__))

        logger.info(f"Invoke success for {request.var}")
        return response

    async def invoke(self, var: str, args_payload: str | bytes | None) -> Any:
        """
        Run a named function and return its JSON-compatible result.

        Raises:
            InvalidNameError: ``var`` is not ``namespace/function``.
            InitializationError: The session could not be created.
            ArgsDecodeError: The args payload is not a JSON array.
            UnknownFunctionError: No such function.
            ArgumentError: Argument count or types do not match.
            UnsupportedOperationError: Declared but not supported.
            PodError: Any failure raised by the handler.
        """
        name = QualifiedName.parse(var)
        session = await self._ensure_session()
        args = decode_args(args_payload)

        spec = lookup(name.function) if name.namespace == self.namespace else None
        if spec is None:
            raise UnknownFunctionError.for_name(name.function)

        spec.validate(args)
        if not spec.supported:
            raise UnsupportedOperationError.for_name(spec.name)

        if spec.kind is FunctionKind.SESSION:
            result = getattr(session, spec.method)()
            if inspect.isawaitable(result):
                result = await result
        else:
            result = await session.call(spec, args)

        return _to_wire(result)

    async def close(self) -> None:
        """Tear down the session if one was created."""
        session, self._session = self._session, None
        if session is not None:
            await session.close()

    async def _ensure_session(self) -> "Session":
        if self._session is not None:
            return self._session
        if self._init_error is not None:
            raise InitializationError(self._init_error.message, self._init_error.data)

        logger.info("Initializing messaging client for the first time")
        try:
            session = self._session_factory()
            if inspect.isawaitable(session):
                session = await session
        except InitializationError as e:
            self._init_error = e
            logger.error(f"Error initializing messaging client: {e}")
            raise
        except Exception as e:
            self._init_error = InitializationError(f"Failed to initialize WhatsApp client: {e}")
            logger.error(self._init_error.message)
            raise InitializationError(self._init_error.message) from e

        self._session = session
        logger.info("Messaging client initialized")
        return session

    def _write(self, response: Response) -> None:
        try:
            self._codec.write_response(response)
        except Exception as e:
            logger.error(f"Error writing response {response}: {e}")


def _to_wire(result: Any) -> Any:
    """Unwrap result objects that know their wire shape."""
    to_dict = getattr(result, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return result
