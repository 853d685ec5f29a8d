"""Pod error taxonomy.

Every failure that reaches the wire is a ``PodError``. The dispatcher turns
it into an error response carrying ``message`` as ``ex-message`` and
``to_dict()`` as ``ex-data``.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class PodError(Exception):
    """
    Base pod error.

    Carries a human-readable message and optional structured details.
    No stack or internal detail is ever sent to the parent process.
    """

    message: str
    data: dict[str, Any] | None = None

    def __post_init__(self):
        super().__init__(self.message)

    @property
    def type(self) -> str:
        """Error type name as reported in ``ex-data``."""
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        """Convert to the ``ex-data`` payload."""
        result: dict[str, Any] = {"type": self.type}
        if self.data:
            result.update(self.data)
        return result

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.type}(message={self.message!r}, data={self.data})"


class FramingError(PodError):
    """Input stream could not be decoded. Fatal: stream position is unknown."""

    pass


class UnknownOperationError(PodError):
    """Request carried an op other than describe/invoke/shutdown."""

    @classmethod
    def for_op(cls, op: str) -> "UnknownOperationError":
        return cls(f"Unknown operation: {op}", {"op": op})


class InvalidNameError(PodError):
    """Qualified name is not exactly ``namespace/function``."""

    @classmethod
    def for_var(cls, var: str) -> "InvalidNameError":
        return cls(f"Invalid var format: {var}", {"var": var})


class ArgsDecodeError(PodError):
    """Args payload is not a JSON array."""

    pass


class UnknownFunctionError(PodError):
    """No handler is registered under the requested name."""

    @classmethod
    def for_name(cls, name: str) -> "UnknownFunctionError":
        return cls(f"Unknown function: {name}", {"function": name})


class ArgumentError(PodError):
    """Argument count or type does not match the function signature."""

    pass


class InitializationError(PodError):
    """Messaging client could not be constructed. Sticky for the process."""

    pass


class NotLoggedInError(PodError):
    """Function needs an authenticated client."""

    def __init__(self, message: str = "not logged in", data: dict[str, Any] | None = None):
        super().__init__(message, data)


class UnsupportedOperationError(PodError):
    """Function is declared but not supported by the messaging backend."""

    @classmethod
    def for_name(cls, name: str) -> "UnsupportedOperationError":
        return cls(
            f"{name} is not supported by the current messaging backend",
            {"function": name},
        )


class CollaboratorError(PodError):
    """Messaging client call failed; message text is forwarded as-is."""

    @classmethod
    def wrap(cls, exc: BaseException) -> "CollaboratorError":
        return cls(str(exc) or type(exc).__name__)


class LoginError(PodError):
    """Base for terminal outcomes of one login attempt."""

    status: str = "login-failed"

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["status"] = self.status
        return result


class LoginFailed(LoginError):
    """Messaging client reported a login failure."""

    status = "login-failed"

    def __init__(self, message: str = "login failed", data: dict[str, Any] | None = None):
        super().__init__(message, data)


class LoginTimeout(LoginError):
    """No login event arrived before the timeout elapsed."""

    status = "timeout"

    @classmethod
    def after(cls, seconds: float) -> "LoginTimeout":
        return cls("login timed out", {"timeout": seconds})


class LoginInterrupted(LoginError):
    """Process interrupt arrived while waiting; the process is exiting."""

    status = "interrupted"

    def __init__(self, message: str = "login interrupted", data: dict[str, Any] | None = None):
        super().__init__(message, data)
