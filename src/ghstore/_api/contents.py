"""Repository contents endpoint: /repos/{owner}/{repo}/contents/{path}.

This module knows the wire contract (URL layout, query/body fields,
status codes) and nothing about documents. It is internal to ghstore and
may change at any time.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from ghstore._constants import CONFLICT_STATUSES
from ghstore._transport import Transport
from ghstore.config import StoreConfig
from ghstore.exceptions import ConflictError, NotFoundError, RemoteStoreError
from ghstore.models.remote_file import RemoteFile

_logger = logging.getLogger(__name__)


def contents_endpoint(config: StoreConfig, path: str) -> str:
    """Build the contents URL path for *path* in the configured repository."""
    owner = quote(config.owner or "", safe="")
    repo = quote(config.repo or "", safe="")
    return f"/repos/{owner}/{repo}/contents/{quote(path.lstrip('/'), safe='/')}"


def _error_message(body: Any) -> str:
    if isinstance(body, dict):
        message = body.get("message")
        if message:
            return str(message)
    return ""


def _raise_for_status(*, method: str, path: str, status: int, body: Any) -> None:
    message = _error_message(body) or f"HTTP {status}"
    if status == 404:
        raise NotFoundError(path)
    if method == "PUT" and status in CONFLICT_STATUSES:
        raise ConflictError(
            f"Write to {path} rejected: {message}",
            status_code=status,
            path=path,
        )
    raise RemoteStoreError(
        f"{method} {path} failed: {message}",
        status_code=status,
        path=path,
    )


async def get_content(config: StoreConfig, transport: Transport, path: str) -> RemoteFile:
    """Fetch *path* on the configured branch.

    Raises
    ------
    NotFoundError
        The file does not exist (HTTP 404).
    RemoteStoreError
        Any other failure, or a response that carries no inline base64
        content (directories, files too large for inline content).
    """
    status, body = await transport.request_json(
        "GET",
        contents_endpoint(config, path),
        params={"ref": config.branch},
    )
    if status != 200:
        _raise_for_status(method="GET", path=path, status=status, body=body)

    if not isinstance(body, dict):
        raise RemoteStoreError(
            f"{path} is not a file (got a listing)",
            status_code=status,
            path=path,
        )

    encoding = body.get("encoding")
    content = body.get("content")
    sha = body.get("sha")
    if encoding != "base64" or not isinstance(content, str) or not sha:
        raise RemoteStoreError(
            f"{path} has no inline base64 content (encoding={encoding!r})",
            status_code=status,
            path=path,
        )

    return RemoteFile(path=path, revision=str(sha), content=content.encode("ascii"))


async def put_content(
    config: StoreConfig,
    transport: Transport,
    path: str,
    content: bytes,
    message: str,
    revision: str | None,
) -> str:
    """Create or update *path*, returning the new blob SHA.

    ``revision`` must be the SHA read last; it is omitted from the body
    when ``None`` so GitHub creates the file.

    Raises
    ------
    ConflictError
        The revision no longer matches (HTTP 409/422).
    RemoteStoreError
        Any other failure.
    """
    payload: dict[str, Any] = {
        "message": message,
        "content": content.decode("ascii"),
        "branch": config.branch,
    }
    if revision:
        payload["sha"] = revision

    status, body = await transport.request_json(
        "PUT",
        contents_endpoint(config, path),
        payload=payload,
    )
    if status not in (200, 201):
        _raise_for_status(method="PUT", path=path, status=status, body=body)

    new_revision = ""
    if isinstance(body, dict) and isinstance(body.get("content"), dict):
        new_revision = str(body["content"].get("sha") or "")
    _logger.debug("Wrote %s (revision %s -> %s)", path, revision, new_revision or "?")
    return new_revision
