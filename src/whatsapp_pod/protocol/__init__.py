"""
Pod protocol core.

Implements bencode framing over stdio, the request/response model and the
error taxonomy. The request loop lives in ``whatsapp_pod.protocol.dispatcher``.
"""

from whatsapp_pod.protocol.messages import (
    Op,
    QualifiedName,
    Request,
    CapabilityManifest,
    NamespaceEntry,
    FunctionEntry,
    InvokeResult,
    ErrorResult,
    PAYLOAD_FORMAT,
    decode_args,
)
from whatsapp_pod.protocol.errors import (
    PodError,
    FramingError,
    UnknownOperationError,
    InvalidNameError,
    ArgsDecodeError,
    UnknownFunctionError,
    ArgumentError,
    InitializationError,
    NotLoggedInError,
    UnsupportedOperationError,
    CollaboratorError,
    LoginError,
    LoginFailed,
    LoginTimeout,
    LoginInterrupted,
)
from whatsapp_pod.protocol.codec import PodCodec, RequestReader, EndOfStream

__all__ = [
    # Messages
    "Op",
    "QualifiedName",
    "Request",
    "CapabilityManifest",
    "NamespaceEntry",
    "FunctionEntry",
    "InvokeResult",
    "ErrorResult",
    "PAYLOAD_FORMAT",
    "decode_args",
    # Errors
    "PodError",
    "FramingError",
    "UnknownOperationError",
    "InvalidNameError",
    "ArgsDecodeError",
    "UnknownFunctionError",
    "ArgumentError",
    "InitializationError",
    "NotLoggedInError",
    "UnsupportedOperationError",
    "CollaboratorError",
    "LoginError",
    "LoginFailed",
    "LoginTimeout",
    "LoginInterrupted",
    # Codec
    "PodCodec",
    "RequestReader",
    "EndOfStream",
]
