"""Pod configuration loading."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

from whatsapp_pod.client.functions import DEFAULT_NAMESPACE
from whatsapp_pod.lib import oj
from whatsapp_pod.session.session import DEFAULT_LOGIN_TIMEOUT

logger = logging.getLogger(__name__)

# Config file locations
CONFIG_FILENAME = "config.json"
LOCAL_CONFIG_DIR = ".whatsapp-pod"
GLOBAL_CONFIG = Path.home() / LOCAL_CONFIG_DIR / CONFIG_FILENAME

# Environment overrides, applied after config files
ENV_OVERRIDES = {
    "WHATSAPP_POD_STORE": "store_path",
    "WHATSAPP_POD_LOG_FILE": "log_file",
    "WHATSAPP_POD_LOGIN_TIMEOUT": "login_timeout",
    "WHATSAPP_POD_CLIENT": "client",
}


@dataclass
class PodConfig:
    """Configuration for the pod process."""

    store_path: str = "whatsapp.db"
    """Credential store handed to the messaging client; never read by the pod."""

    log_file: str = "pod.log"
    """Log destination. Standard output is reserved for the wire protocol."""

    login_timeout: float = DEFAULT_LOGIN_TIMEOUT
    """Seconds ``login`` waits for a code, success or failure event."""

    client: str | None = None
    """Messaging client factory as ``module:callable``, called with ``store_path``."""

    namespace: str = DEFAULT_NAMESPACE
    """Namespace advertised by ``describe``."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        self.login_timeout = float(self.login_timeout)
        if self.login_timeout <= 0:
            raise ValueError("login_timeout must be positive")
        if not self.store_path:
            raise ValueError("store_path is required")
        if not self.namespace:
            raise ValueError("namespace is required")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PodConfig":
        """Create from config dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = oj.loads(path.read_bytes())
    except (OSError, oj.JSONDecodeError) as e:
        logger.warning(f"Skipping unreadable config {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Skipping config {path}: expected a JSON object")
        return {}
    return data


def load_config(
    working_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
    global_config: Path = GLOBAL_CONFIG,
) -> PodConfig:
    """Load pod config from global and local files, then the environment.

    Global config (~/.whatsapp-pod/config.json) is loaded first.
    Local config ({working_dir}/.whatsapp-pod/config.json) overrides global.
    ``WHATSAPP_POD_*`` environment variables override both.

    Raises:
        ValueError: If the merged settings are invalid.
    """
    environ = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    data.update(_read_config_file(global_config))
    if working_dir:
        data.update(_read_config_file(working_dir / LOCAL_CONFIG_DIR / CONFIG_FILENAME))

    for var, key in ENV_OVERRIDES.items():
        if environ.get(var):
            data[key] = environ[var]

    return PodConfig.from_dict(data)
