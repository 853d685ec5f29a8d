"""Resolve the configured messaging client factory."""

from __future__ import annotations

import importlib
import logging
from typing import Any, Callable

from whatsapp_pod.client.base import MessagingClient
from whatsapp_pod.protocol.errors import InitializationError

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], MessagingClient]


def resolve_factory(target: str | None) -> ClientFactory:
    """
    Import a ``module:callable`` reference.

    Raises:
        InitializationError: If no target is set or it cannot be imported.
    """
    if not target:
        raise InitializationError(
            "No messaging client configured; set WHATSAPP_POD_CLIENT "
            "or 'client' in .whatsapp-pod/config.json to 'module:factory'"
        )

    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise InitializationError(
            f"Invalid client reference {target!r}; expected 'module:factory'"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise InitializationError(f"Cannot import client module {module_name!r}: {e}") from e

    obj: Any = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise InitializationError(f"Client factory {target!r} not found") from e

    if not callable(obj):
        raise InitializationError(f"Client factory {target!r} is not callable")
    return obj


def create_client(target: str | None, store_path: str) -> MessagingClient:
    """
    Build the messaging client over the credential store at ``store_path``.

    Raises:
        InitializationError: If the factory is missing, fails, or returns
            something that is not a ``MessagingClient``.
    """
    factory = resolve_factory(target)
    logger.info(f"Creating messaging client with store {store_path}")
    try:
        client = factory(store_path)
    except InitializationError:
        raise
    except Exception as e:
        raise InitializationError(f"Failed to initialize WhatsApp client: {e}") from e

    if not isinstance(client, MessagingClient):
        raise InitializationError(
            f"Client factory {target!r} returned {type(client).__name__}, "
            "not a MessagingClient"
        )
    return client
