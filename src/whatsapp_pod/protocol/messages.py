"""Pod request and response message types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from whatsapp_pod.protocol.errors import ArgsDecodeError, InvalidNameError, PodError
from whatsapp_pod.lib import oj

PAYLOAD_FORMAT = "json"
NAME_SEPARATOR = "/"


class Op(Enum):
    """Operation tags understood by the dispatcher."""

    DESCRIBE = "describe"
    INVOKE = "invoke"
    SHUTDOWN = "shutdown"


@dataclass
class QualifiedName:
    """A ``namespace/function`` pair."""

    namespace: str
    function: str

    @classmethod
    def parse(cls, var: str) -> "QualifiedName":
        """
        Split a qualified name.

        Exactly one separator is required.

        Raises:
            InvalidNameError: If the separator is missing or repeated.
        """
        parts = var.split(NAME_SEPARATOR)
        if len(parts) != 2:
            raise InvalidNameError.for_var(var)
        return cls(namespace=parts[0], function=parts[1])

    def __str__(self) -> str:
        return f"{self.namespace}{NAME_SEPARATOR}{self.function}"


@dataclass
class Request:
    """
    A decoded pod request.

    ``op`` is kept as received so an unknown tag can be reported back
    instead of failing the decode.
    """

    op: str
    id: str = ""
    var: str = ""
    args: str | bytes = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Request":
        """Create from a decoded bencode dict."""
        return cls(
            op=data.get("op", ""),
            id=data.get("id", ""),
            var=data.get("var", ""),
            args=data.get("args", ""),
        )

    def __str__(self) -> str:
        return f"Request({self.op}, id={self.id}, var={self.var})"


@dataclass
class FunctionEntry:
    """One invocable function in the capability manifest."""

    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name}


@dataclass
class NamespaceEntry:
    """One namespace in the capability manifest."""

    name: str
    functions: list[FunctionEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "vars": [fn.to_dict() for fn in self.functions],
        }


@dataclass
class CapabilityManifest:
    """Response to ``describe``."""

    namespaces: list[NamespaceEntry] = field(default_factory=list)
    format: str = PAYLOAD_FORMAT

    def to_dict(self) -> dict[str, Any]:
        """Convert to wire format."""
        return {
            "format": self.format,
            "namespaces": [ns.to_dict() for ns in self.namespaces],
        }


@dataclass
class InvokeResult:
    """Successful invocation; ``value`` is the JSON text of the result."""

    id: str
    value: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to wire format."""
        return {
            "id": self.id,
            "value": self.value,
            "status": ["done"],
        }

    @classmethod
    def encode(cls, id: str, result: Any) -> "InvokeResult":
        """
        Serialize ``result`` in the payload format.

        Raises:
            PodError: If the value is not JSON-compatible.
        """
        try:
            value = oj.dumps_str(result)
        except (oj.JSONEncodeError, TypeError) as e:
            raise PodError(f"Error marshaling result to JSON: {e}") from e
        return cls(id=id, value=value)

    def __str__(self) -> str:
        return f"InvokeResult(id={self.id}, success)"


@dataclass
class ErrorResult:
    """Failed request. Never carries a value."""

    id: str
    message: str
    data: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to wire format."""
        msg: dict[str, Any] = {
            "id": self.id,
            "status": ["done", "error"],
            "ex-message": self.message,
        }
        if self.data is not None:
            msg["ex-data"] = self.data
        return msg

    @classmethod
    def from_error(cls, id: str, error: PodError) -> "ErrorResult":
        """Build from a pod error, attaching its details as ``ex-data``."""
        return cls(id=id, message=error.message, data=oj.dumps_str(error.to_dict()))

    def __str__(self) -> str:
        return f"ErrorResult(id={self.id}, {self.message})"


Response = CapabilityManifest | InvokeResult | ErrorResult


def decode_args(payload: str | bytes | None) -> list[Any]:
    """
    Parse an args payload into positional arguments.

    Empty payloads and the literal ``null`` mean no arguments.

    Raises:
        ArgsDecodeError: If the payload is not a JSON array.
    """
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ArgsDecodeError(f"Invoke args are not valid UTF-8: {e}") from e
    if not payload or payload == "null":
        return []
    try:
        args = oj.loads(payload)
    except oj.JSONDecodeError as e:
        raise ArgsDecodeError(f"Error unmarshaling invoke args JSON: {e}") from e
    if args is None:
        return []
    if not isinstance(args, list):
        raise ArgsDecodeError(
            f"Invoke args must be a JSON array, got {type(args).__name__}"
        )
    return args
