"""Abstract messaging client the pod forwards calls to."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable

from whatsapp_pod.client.events import ClientEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[ClientEvent], None]


class MessagingClient(ABC):
    """
    Capability surface of the external messaging client.

    Network, protocol and crypto work all live behind this interface.
    The client reports progress by calling registered event handlers,
    possibly from its own threads; handlers never block.

    Pass-through capabilities are plain coroutine methods named after the
    pod function with dashes replaced by underscores (``send-message`` is
    ``send_message``). Each returns a JSON-compatible value or raises.
    """

    def __init__(self) -> None:
        self._event_handlers: list[EventHandler] = []

    def on_event(self, handler: EventHandler) -> None:
        """
        Register an event handler.

        Args:
            handler: Callback invoked for every client event.
        """
        self._event_handlers.append(handler)

    def _emit_event(self, event: ClientEvent) -> None:
        """Deliver an event to all registered handlers."""
        for handler in self._event_handlers:
            try:
                handler(event)
            except Exception:
                # Keep delivering to the remaining handlers
                logger.exception(f"Event handler error for {event}")

    @abstractmethod
    async def connect(self) -> None:
        """
        Start connecting.

        Returns once the connection attempt is under way; login progress
        arrives as events.

        Raises:
            Exception: If the attempt could not be started.
        """
        pass

    @abstractmethod
    def is_logged_in(self) -> bool:
        """Whether the client holds an authenticated session right now."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """
        Drop the connection, keeping stored credentials.

        Safe to call multiple times.
        """
        pass

    @abstractmethod
    async def logout(self) -> None:
        """Revoke stored credentials and disconnect."""
        pass

    async def close(self) -> None:
        """Release resources such as the credential store."""
        pass

    async def call(self, method: str, *args: Any) -> Any:
        """
        Invoke a pass-through capability by method name.

        Raises:
            AttributeError: If the client does not implement ``method``.
        """
        return await getattr(self, method)(*args)
