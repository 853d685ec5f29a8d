"""Declarations of every invocable pod function.

The capability manifest and argument validation both derive from the
``FUNCTIONS`` table, so a function cannot be advertised without also
being checked.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from whatsapp_pod.protocol.errors import ArgumentError
from whatsapp_pod.protocol.messages import (
    CapabilityManifest,
    FunctionEntry,
    NamespaceEntry,
)

DEFAULT_NAMESPACE = "pod.whatsapp"


class ArgType(Enum):
    """JSON value types a parameter may declare."""

    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    STRING_LIST = "list of strings"

    def accepts(self, value: Any) -> bool:
        """Check whether a decoded JSON value matches this type."""
        if self is ArgType.STRING:
            return isinstance(value, str)
        if self is ArgType.BOOLEAN:
            return isinstance(value, bool)
        if self is ArgType.INTEGER:
            # bool is an int subclass; JSON true is not a number
            return isinstance(value, int) and not isinstance(value, bool)
        if self is ArgType.STRING_LIST:
            return isinstance(value, list) and all(isinstance(v, str) for v in value)
        return False


class FunctionKind(Enum):
    """Where a function is routed."""

    SESSION = "session"
    PASSTHROUGH = "passthrough"


@dataclass
class Param:
    name: str
    type: ArgType = ArgType.STRING


@dataclass
class FunctionSpec:
    """
    One invocable function.

    ``method`` is the handler name on the session or messaging client.
    Unsupported functions are advertised and validated but never reach
    the messaging client.
    """

    name: str
    params: list[Param] = field(default_factory=list)
    kind: FunctionKind = FunctionKind.PASSTHROUGH
    supported: bool = True

    @property
    def method(self) -> str:
        return self.name.replace("-", "_")

    @property
    def arity(self) -> int:
        return len(self.params)

    def validate(self, args: list[Any]) -> list[Any]:
        """
        Check argument count and types before dispatch.

        Returns:
            The arguments, unchanged.

        Raises:
            ArgumentError: On a count or type mismatch.
        """
        if len(args) != self.arity:
            names = ", ".join(p.name for p in self.params)
            raise ArgumentError(
                f"{self.name} expects {self.arity} argument"
                f"{'' if self.arity == 1 else 's'} ({names}), got {len(args)}",
                {"function": self.name, "expected": self.arity, "got": len(args)},
            )
        for position, (param, value) in enumerate(zip(self.params, args), start=1):
            if not param.type.accepts(value):
                raise ArgumentError(
                    f"{self.name} argument {position} ({param.name}) must be a "
                    f"{param.type.value}, got {_json_type(value)}",
                    {"function": self.name, "argument": param.name},
                )
        return args


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _s(*names: str) -> list[Param]:
    return [Param(name) for name in names]


_SESSION = FunctionKind.SESSION

FUNCTIONS: tuple[FunctionSpec, ...] = (
    # Session
    FunctionSpec("login", kind=_SESSION),
    FunctionSpec("logout", kind=_SESSION),
    FunctionSpec("status", kind=_SESSION),
    # Messaging
    FunctionSpec("send-message", _s("phone", "message")),
    FunctionSpec("get-groups"),
    FunctionSpec("send-group-message", _s("group_jid", "message")),
    FunctionSpec("upload", _s("file_path", "mime_type")),
    FunctionSpec("send-image", _s("recipient", "file_path", "caption")),
    FunctionSpec("send-document", _s("recipient", "file_path", "caption")),
    FunctionSpec("send-video", _s("recipient", "file_path", "caption")),
    FunctionSpec("send-audio", _s("recipient", "file_path")),
    # Contacts and presence
    FunctionSpec("get-contact-info", _s("jid")),
    FunctionSpec("get-profile-picture", _s("jid")),
    FunctionSpec("set-profile-picture", _s("file_path"), supported=False),
    FunctionSpec("set-status", _s("text")),
    FunctionSpec("get-status", _s("jid")),
    FunctionSpec("set-presence", [Param("is_online", ArgType.BOOLEAN)]),
    FunctionSpec("subscribe-presence", _s("jid")),
    # History
    FunctionSpec(
        "get-chat-history",
        [Param("jid"), Param("limit", ArgType.INTEGER)],
        supported=False,
    ),
    FunctionSpec("get-unread-messages", supported=False),
    FunctionSpec("mark-message-as-read", _s("message_id", "chat_jid")),
    FunctionSpec(
        "delete-message",
        [Param("message_id"), Param("for_everyone", ArgType.BOOLEAN)],
        supported=False,
    ),
    # Groups
    FunctionSpec(
        "create-group",
        [Param("name"), Param("participants", ArgType.STRING_LIST)],
    ),
    FunctionSpec("leave-group", _s("group_jid")),
    FunctionSpec("get-group-invite-link", _s("group_jid")),
    FunctionSpec("join-group-with-link", _s("link")),
    FunctionSpec("set-group-name", _s("group_jid", "name")),
    FunctionSpec("set-group-topic", _s("group_jid", "topic"), supported=False),
    *(
        FunctionSpec(
            f"{verb}-group-participants",
            [Param("group_jid"), Param("participants", ArgType.STRING_LIST)],
            supported=False,
        )
        for verb in ("add", "remove", "promote", "demote")
    ),
)

FUNCTION_INDEX: dict[str, FunctionSpec] = {spec.name: spec for spec in FUNCTIONS}


def lookup(name: str) -> FunctionSpec | None:
    """Find a function by its pod name."""
    return FUNCTION_INDEX.get(name)


def build_manifest(namespace: str = DEFAULT_NAMESPACE) -> CapabilityManifest:
    """Build the static ``describe`` response."""
    return CapabilityManifest(
        namespaces=[
            NamespaceEntry(
                name=namespace,
                functions=[FunctionEntry(spec.name) for spec in FUNCTIONS],
            )
        ]
    )
