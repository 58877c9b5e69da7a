"""Document codec: base64-wrapped UTF-8 JSON <-> in-memory documents.

The codec is shape-agnostic. Whether a document is a list of scans or a
mapping of vehicles is a contract of the caller.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from ghstore.exceptions import CodecError

Document = list[Any] | dict[str, Any]

_INDENT = 2


def decode(blob: bytes | str) -> Document:
    """Decode a stored blob into a document.

    GitHub wraps base64 content at 60 columns, so all whitespace is
    dropped before a strict decode.

    Raises
    ------
    CodecError
        On malformed base64, non-UTF-8 bytes or malformed JSON. Callers
        must not treat this as an empty document.
    """
    if isinstance(blob, str):
        blob = blob.encode("ascii", errors="replace")
    compact = b"".join(blob.split())

    try:
        raw = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise CodecError(f"stored content is not valid base64: {exc}") from exc

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CodecError(f"stored content is not UTF-8: {exc}") from exc

    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise CodecError(f"stored content is not JSON: {exc}") from exc


def dumps(document: Document) -> str:
    """Serialize with stable indentation so repository diffs stay readable."""
    return json.dumps(document, indent=_INDENT, ensure_ascii=False)


def encode(document: Document) -> bytes:
    """Serialize *document* and wrap it in base64."""
    return base64.b64encode(dumps(document).encode("utf-8"))
