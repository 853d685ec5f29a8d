"""Session phases and the values session operations return."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from whatsapp_pod.client.events import MessageInfo


class Phase(Enum):
    """
    Login/connection phases.

    Transitions:
        NOT_CONNECTED -> CONNECTING -> CODE_PENDING -> CONNECTED
                              \\             \\
                               -> CONNECTED   -> FAILED
                               -> FAILED

    Any phase moves to LOGGED_OUT on explicit logout. FAILED and
    LOGGED_OUT stay put until a new login attempt resets to CONNECTING.
    Values are the names the parent process sees.
    """

    NOT_CONNECTED = "not-logged-in"
    CONNECTING = "connecting"
    CODE_PENDING = "qr-pending"
    CONNECTED = "logged-in"
    FAILED = "login-failed"
    LOGGED_OUT = "logged-out"

    @property
    def in_progress(self) -> bool:
        """A login attempt is under way."""
        return self in (Phase.CONNECTING, Phase.CODE_PENDING)

    @property
    def is_terminal(self) -> bool:
        """Only a new login attempt leaves this phase."""
        return self in (Phase.FAILED, Phase.LOGGED_OUT)

    def __str__(self) -> str:
        return self.value


@dataclass
class LoginResult:
    """Value returned by a successful ``login``."""

    status: Phase
    qr_code: str | None = None
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to pod wire format."""
        result: dict[str, Any] = {"status": self.status.value}
        if self.qr_code:
            result["qr_code"] = self.qr_code
        if self.message:
            result["message"] = self.message
        return result


@dataclass
class StatusResult:
    """Value returned by ``status`` and ``logout``."""

    status: Phase
    last_message: MessageInfo | None = None
    qr_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to pod wire format."""
        result: dict[str, Any] = {"status": self.status.value}
        if self.qr_code:
            result["qr_code"] = self.qr_code
        if self.last_message is not None:
            result["last_message"] = self.last_message.to_dict()
        return result
