"""Thin orjson wrapper used for config files and JSON payloads."""

from __future__ import annotations

from typing import Any

import orjson

JSONDecodeError = orjson.JSONDecodeError
JSONEncodeError = orjson.JSONEncodeError


def loads(data: bytes | str) -> Any:
    """Parse JSON text or bytes."""
    return orjson.loads(data)


def dumps(obj: Any) -> bytes:
    """Serialize to compact JSON bytes."""
    return orjson.dumps(obj)


def dumps_str(obj: Any) -> str:
    """Serialize to compact JSON text."""
    return orjson.dumps(obj).decode("utf-8")
