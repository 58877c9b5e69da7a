"""Read-modify-write synchronization of JSON documents in a blob store.

Every call is a fresh run: read the current blob and revision, apply a
pure mutation in memory, write back conditioned on the revision that
was read. No in-process lock or cache is involved; atomicity comes
entirely from the blob store's conditional write. Two overlapping
cycles on the same path race and the loser gets a
:class:`~ghstore.exceptions.ConflictError` (or, on stores that do not
enforce revisions, silently loses its update).
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass

from ghstore import codec
from ghstore.blob_store import BlobStore
from ghstore.codec import Document
from ghstore.config import StoreConfig
from ghstore.exceptions import CodecError, ConflictError, NotFoundError

_logger = logging.getLogger(__name__)

_JSON_TYPE_NAMES = {
    list: "array",
    dict: "object",
    str: "string",
    int: "number",
    float: "number",
    bool: "boolean",
    type(None): "null",
}

Mutation = Callable[[Document], Document]
MessageBuilder = Callable[[Document], str]


@dataclass(frozen=True, slots=True)
class DocumentSpec:
    """Where a document lives and what it looks like before its first write."""

    path: str
    default_factory: Callable[[], Document]

    def empty(self) -> Document:
        return self.default_factory()


def scans_document(config: StoreConfig) -> DocumentSpec:
    return DocumentSpec(path=config.scans_path, default_factory=list)


def vehicles_document(config: StoreConfig) -> DocumentSpec:
    return DocumentSpec(path=config.vehicles_path, default_factory=dict)


@dataclass(frozen=True, slots=True)
class SyncedDocument:
    """A decoded document with the revision it was read at.

    ``revision`` is ``None`` when the path did not exist yet.
    """

    path: str
    content: Document
    revision: str | None


class DocumentStore:
    """Runs read-modify-write cycles against a :class:`BlobStore`.

    Parameters
    ----------
    blob_store : BlobStore
        Backend holding the documents.
    max_conflict_retries : int
        Extra cycles to run when the conditional write is rejected.
        Each retry re-reads the document and re-applies the mutation
        from scratch; nothing is merged. The default ``0`` surfaces the
        first conflict to the caller.
    """

    def __init__(self, blob_store: BlobStore, *, max_conflict_retries: int = 0) -> None:
        self._blobs = blob_store
        self._max_conflict_retries = max_conflict_retries

    async def load(self, spec: DocumentSpec) -> SyncedDocument:
        """Read *spec*'s document, substituting the empty default if absent.

        Only a confirmed not-found yields the default. Decode failures,
        and documents whose top-level JSON type differs from the
        default's, raise :class:`CodecError`. Remote failures raise
        :class:`RemoteStoreError`.
        """
        try:
            remote = await self._blobs.fetch(spec.path)
        except NotFoundError:
            _logger.debug("%s not found; starting from an empty document", spec.path)
            return SyncedDocument(path=spec.path, content=spec.empty(), revision=None)
        content = codec.decode(remote.content)
        expected = type(spec.empty())
        if not isinstance(content, expected):
            raise CodecError(
                f"{spec.path} holds a JSON {_JSON_TYPE_NAMES.get(type(content), type(content).__name__)}, "
                f"expected {_JSON_TYPE_NAMES.get(expected, expected.__name__)}"
            )
        return SyncedDocument(path=spec.path, content=content, revision=remote.revision)

    async def update(
        self,
        spec: DocumentSpec,
        mutate: Mutation,
        message: str | MessageBuilder,
    ) -> SyncedDocument:
        """Apply *mutate* to the stored document and write it back.

        *mutate* receives a private copy of the current document and
        returns the new one. *message* is the commit message, or a
        callable building it from the document as read (before the
        mutation).

        Returns the written document with its new revision. Nothing is
        written if reading, decoding or the configuration check fails.
        """
        self._blobs.ensure_writable()

        attempt = 0
        while True:
            current = await self.load(spec)
            commit_message = message(current.content) if callable(message) else message
            updated = mutate(copy.deepcopy(current.content))
            try:
                new_revision = await self._blobs.write(
                    spec.path,
                    codec.encode(updated),
                    commit_message,
                    current.revision,
                )
            except ConflictError:
                if attempt >= self._max_conflict_retries:
                    raise
                attempt += 1
                _logger.warning(
                    "Conflict writing %s at revision %s; retrying from a fresh read (%d/%d)",
                    spec.path,
                    current.revision,
                    attempt,
                    self._max_conflict_retries,
                )
                continue
            return SyncedDocument(path=spec.path, content=updated, revision=new_revision or None)
