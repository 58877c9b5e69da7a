"""Remote blob store clients.

A blob store is anything with path-addressed content and a
conditional write keyed by revision. :class:`GitHubBlobStore` talks to
the GitHub contents API; :class:`MemoryBlobStore` keeps everything in
process for local runs and tests.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Protocol

import aiohttp

from ghstore._api import contents as _contents_api
from ghstore._transport import GitHubTransport, Transport
from ghstore.config import StoreConfig
from ghstore.exceptions import ConfigurationError, ConflictError, GhStoreError, NotFoundError
from ghstore.models.remote_file import RemoteFile

_logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    """Capability interface the document store is written against."""

    async def fetch(self, path: str) -> RemoteFile:
        """Return the current content and revision of *path*.

        Raises :class:`NotFoundError` when the path does not exist and
        :class:`RemoteStoreError` for any other failure.
        """
        ...

    async def write(self, path: str, content: bytes, message: str, revision: str | None) -> str:
        """Create (``revision=None``) or conditionally overwrite *path*.

        Returns the new revision. A stale revision raises
        :class:`ConflictError`; nothing is retried here.
        """
        ...

    def ensure_writable(self) -> None:
        """Raise :class:`ConfigurationError` if writes cannot succeed."""
        ...


class GitHubBlobStore:
    """Blob store backed by a GitHub repository branch.

    Usage::

        async with GitHubBlobStore(config) as blobs:
            remote = await blobs.fetch("data/scans.json")
    """

    def __init__(
        self,
        config: StoreConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport

    async def __aenter__(self) -> GitHubBlobStore:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = GitHubTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise GhStoreError("Blob store not initialized. Use 'async with GitHubBlobStore(...) as blobs:'")
        return self._transport

    def ensure_writable(self) -> None:
        if not self._config.has_credential:
            raise ConfigurationError("GitHub token not configured")
        if not self._config.has_repository:
            raise ConfigurationError("GitHub repository not configured (set GITHUB_OWNER and GITHUB_REPO)")

    async def fetch(self, path: str) -> RemoteFile:
        if not self._config.has_repository:
            # Nothing to read from: behave like an empty repository.
            _logger.warning("GitHub repository not configured; treating %s as absent", path)
            raise NotFoundError(path)
        return await _contents_api.get_content(self._config, self._require_transport(), path)

    async def write(self, path: str, content: bytes, message: str, revision: str | None) -> str:
        self.ensure_writable()
        new_revision = await _contents_api.put_content(
            self._config,
            self._require_transport(),
            path,
            content,
            message,
            revision,
        )
        _logger.info("Committed %s to %s@%s: %s", path, self._config.repo_slug, self._config.branch, message)
        return new_revision


def blob_sha(content: bytes) -> str:
    """Git-style blob id of *content*."""
    header = f"blob {len(content)}\0".encode()
    return hashlib.sha1(header + content).hexdigest()  # noqa: S324


class MemoryBlobStore:
    """In-process blob store with strict revision checking.

    Revisions are git-style blob ids of the stored bytes, and every write keeps
    its commit message in :attr:`commits` so callers can audit history
    the same way they would in the repository.
    """

    def __init__(self, files: dict[str, bytes] | None = None, *, writable: bool = True) -> None:
        self._files: dict[str, tuple[bytes, str]] = {}
        self._writable = writable
        self.commits: list[tuple[str, str]] = []
        for path, content in (files or {}).items():
            self._files[path] = (content, blob_sha(content))

    def ensure_writable(self) -> None:
        if not self._writable:
            raise ConfigurationError("Blob store is read-only")

    async def fetch(self, path: str) -> RemoteFile:
        try:
            content, revision = self._files[path]
        except KeyError:
            raise NotFoundError(path) from None
        return RemoteFile(path=path, revision=revision, content=content)

    async def write(self, path: str, content: bytes, message: str, revision: str | None) -> str:
        self.ensure_writable()
        current = self._files.get(path)
        current_revision = current[1] if current is not None else None
        if revision != current_revision:
            raise ConflictError(
                f"Write to {path} rejected: revision {revision!r} does not match {current_revision!r}",
                status_code=409,
                path=path,
            )
        new_revision = blob_sha(content)
        self._files[path] = (content, new_revision)
        self.commits.append((path, message))
        _logger.info("Committed %s in memory: %s", path, message)
        return new_revision
