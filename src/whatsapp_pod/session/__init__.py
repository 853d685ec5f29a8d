"""Login/connection session."""

from whatsapp_pod.session.state import Phase, LoginResult, StatusResult
from whatsapp_pod.session.signals import LoginSignal, SignalKind, SignalSlot
from whatsapp_pod.session.session import Session, DEFAULT_LOGIN_TIMEOUT

__all__ = [
    "Phase",
    "LoginResult",
    "StatusResult",
    "LoginSignal",
    "SignalKind",
    "SignalSlot",
    "Session",
    "DEFAULT_LOGIN_TIMEOUT",
]
