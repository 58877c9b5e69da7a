"""Helpers for safe debug logging of contents API traffic.

Two things in a GitHub request must never reach a log line:

* the bearer token, sent in the ``Authorization`` header. The scheme is
  kept so a missing ``Bearer`` prefix is still visible when debugging.
* the document itself. GET responses and PUT bodies carry the whole file
  as a base64 string under ``content``; only its length is logged. PUT
  responses reuse the ``content`` key for file metadata (``sha``,
  ``path``), which is logged as is.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_CREDENTIAL_KEYS: frozenset[str] = frozenset({"authorization", "token"})
_BLOB_KEYS: frozenset[str] = frozenset({"content"})


def _redact_credential(value: Any) -> str:
    if isinstance(value, str) and " " in value:
        scheme, _, _ = value.partition(" ")
        return f"{scheme} <redacted>"
    return "<redacted>"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a copy of *value* with credentials and file payloads removed.

    Header mappings (including aiohttp's case-insensitive ones) and JSON
    bodies are both accepted. Strings longer than *max_string* are
    truncated. Anything that is not JSON-like is logged through ``str``.
    """
    if _depth > 20:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            lowered = key.lower()
            if lowered in _CREDENTIAL_KEYS:
                redacted[key] = _redact_credential(v)
            elif lowered in _BLOB_KEYS and isinstance(v, str):
                redacted[key] = f"<base64:{len(v)} chars>"
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return str(value)
