"""Log file setup for the pod process."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s:%(lineno)d %(message)s"


def setup_logging(path: str | None, level: int = logging.INFO) -> logging.Logger:
    """
    Send package logs to ``path``.

    Falls back to stderr when the file cannot be opened. Never logs to
    stdout, which carries the wire protocol.

    Returns:
        The configured package logger.
    """
    package_logger = logging.getLogger("whatsapp_pod")
    package_logger.setLevel(level)

    handler: logging.Handler
    error: OSError | None = None
    if path:
        try:
            handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        except OSError as e:
            error = e
            handler = logging.StreamHandler(sys.stderr)
    else:
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    package_logger.propagate = False

    if error is not None:
        package_logger.error(f"Error opening log file {path}: {error}")
        package_logger.info("Logging to stderr instead")
    package_logger.info("--- Pod started ---")
    return package_logger
