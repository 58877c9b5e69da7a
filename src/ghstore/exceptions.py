"""Custom exception hierarchy for ghstore."""

from __future__ import annotations


class GhStoreError(Exception):
    """Base exception for all ghstore errors."""


class ConfigurationError(GhStoreError):
    """Invalid or missing configuration (e.g. no credential at write time)."""


class CodecError(GhStoreError):
    """Stored content is not base64-wrapped UTF-8 JSON."""


class NotFoundError(GhStoreError):
    """The requested path does not exist in the remote store.

    The document store recovers from this by substituting an empty
    document; it is never surfaced to HTTP callers.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"{path} not found")


class RemoteStoreError(GhStoreError):
    """Transport or API failure other than not-found."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        path: str = "",
    ) -> None:
        self.status_code = status_code
        self.path = path
        super().__init__(message)


class ConflictError(RemoteStoreError):
    """Conditional write rejected because the revision no longer matches."""


class InvalidRequestError(GhStoreError):
    """Client sent a body or query the routes cannot act on."""

    def __init__(self, message: str, *, details: object = None) -> None:
        self.details = details
        super().__init__(message)
