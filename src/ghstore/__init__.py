"""ghstore - Async GitHub-backed JSON storage for scan and vehicle records."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ghstore")
except PackageNotFoundError:
    __version__ = "0+local"
from ghstore.blob_store import BlobStore, GitHubBlobStore, MemoryBlobStore
from ghstore.config import StoreConfig
from ghstore.document_store import DocumentSpec, DocumentStore, SyncedDocument
from ghstore.exceptions import (
    CodecError,
    ConfigurationError,
    ConflictError,
    GhStoreError,
    InvalidRequestError,
    NotFoundError,
    RemoteStoreError,
)
from ghstore.models import HealthStatus, RemoteFile
from ghstore.records import ScanLog, VehicleRegistry
from ghstore.server import create_app

__all__ = [
    "__version__",
    "BlobStore",
    "CodecError",
    "ConfigurationError",
    "ConflictError",
    "DocumentSpec",
    "DocumentStore",
    "GhStoreError",
    "GitHubBlobStore",
    "HealthStatus",
    "InvalidRequestError",
    "MemoryBlobStore",
    "NotFoundError",
    "RemoteFile",
    "RemoteStoreError",
    "ScanLog",
    "StoreConfig",
    "SyncedDocument",
    "VehicleRegistry",
    "create_app",
]
