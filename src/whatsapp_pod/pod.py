"""Wire config, streams, client and session into a dispatcher."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from typing import BinaryIO

from whatsapp_pod.cancellation import CancellationToken
from whatsapp_pod.client.loader import create_client
from whatsapp_pod.config import PodConfig
from whatsapp_pod.protocol.codec import PodCodec
from whatsapp_pod.protocol.dispatcher import Dispatcher, SessionFactory
from whatsapp_pod.session.session import Session

logger = logging.getLogger(__name__)

INTERRUPT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def session_factory(config: PodConfig, interrupt: CancellationToken) -> SessionFactory:
    """Build the lazy session factory for ``config``."""

    def factory() -> Session:
        client = create_client(config.client, config.store_path)
        return Session(client, login_timeout=config.login_timeout, interrupt=interrupt)

    return factory


def build_dispatcher(
    config: PodConfig,
    interrupt: CancellationToken,
    input: BinaryIO | None = None,
    output: BinaryIO | None = None,
) -> Dispatcher:
    """Create a dispatcher bound to the given streams (stdio by default)."""
    codec = PodCodec(
        input if input is not None else sys.stdin.buffer,
        output if output is not None else sys.stdout.buffer,
    )
    return Dispatcher(
        codec,
        session_factory(config, interrupt),
        namespace=config.namespace,
    )


async def serve(config: PodConfig) -> int:
    """
    Run the pod on stdio until EOF, shutdown or corrupt input.

    SIGINT and SIGTERM cancel the interrupt token, which abandons an
    in-flight login, and then stop the loop.

    Returns:
        Process exit code.
    """
    interrupt = CancellationToken()
    dispatcher = build_dispatcher(config, interrupt)
    loop = asyncio.get_running_loop()

    def on_cancelled(reason: str | None) -> None:
        dispatcher.stop()

    def on_signal(signum: signal.Signals) -> None:
        logger.info(f"Received {signum.name}, shutting down")
        interrupt.cancel(signum.name)

    interrupt.on_cancelled(on_cancelled)

    for signum in INTERRUPT_SIGNALS:
        try:
            loop.add_signal_handler(signum, on_signal, signum)
        except (NotImplementedError, RuntimeError):
            logger.debug(f"Cannot install handler for {signum.name}")

    try:
        return await dispatcher.run()
    finally:
        interrupt.remove_callback(on_cancelled)
        for signum in INTERRUPT_SIGNALS:
            try:
                loop.remove_signal_handler(signum)
            except (NotImplementedError, RuntimeError):
                pass
