"""ghstore data models."""

from ghstore.models._base import GhStoreModel
from ghstore.models.health import HealthStatus
from ghstore.models.remote_file import RemoteFile
from ghstore.models.requests import JsonObject, ScansBody, VehiclesBody

__all__ = [
    "GhStoreModel",
    "HealthStatus",
    "JsonObject",
    "RemoteFile",
    "ScansBody",
    "VehiclesBody",
]
