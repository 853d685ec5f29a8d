"""
Messaging client interface.

The pod never talks to the messaging network itself; it drives a
``MessagingClient`` and reacts to the events it emits.
"""

from whatsapp_pod.client.base import MessagingClient, EventHandler
from whatsapp_pod.client.events import (
    ClientEvent,
    CodeIssued,
    Connected,
    Authenticated,
    AuthFailed,
    ClientOutdated,
    StreamReset,
    Disconnected,
    InboundMessage,
    MessageInfo,
)
from whatsapp_pod.client.functions import (
    FUNCTIONS,
    DEFAULT_NAMESPACE,
    ArgType,
    FunctionKind,
    FunctionSpec,
    Param,
    build_manifest,
    lookup,
)

__all__ = [
    "MessagingClient",
    "EventHandler",
    # Events
    "ClientEvent",
    "CodeIssued",
    "Connected",
    "Authenticated",
    "AuthFailed",
    "ClientOutdated",
    "StreamReset",
    "Disconnected",
    "InboundMessage",
    "MessageInfo",
    # Functions
    "FUNCTIONS",
    "DEFAULT_NAMESPACE",
    "ArgType",
    "FunctionKind",
    "FunctionSpec",
    "Param",
    "build_manifest",
    "lookup",
]
