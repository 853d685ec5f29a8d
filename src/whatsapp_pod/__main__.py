"""Process entry point: ``whatsapp-pod`` / ``python -m whatsapp_pod``."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

from whatsapp_pod.config import load_config
from whatsapp_pod.logs import setup_logging
from whatsapp_pod.pod import serve

logger = logging.getLogger("whatsapp_pod")


def main() -> None:
    try:
        config = load_config(Path.cwd())
    except ValueError as e:
        setup_logging(None)
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    setup_logging(config.log_file)
    logger.info("Pod started. Messaging client will be initialized on first invoke.")
    sys.exit(asyncio.run(serve(config)))


if __name__ == "__main__":
    main()
