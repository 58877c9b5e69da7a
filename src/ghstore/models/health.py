"""Health check response model."""

from __future__ import annotations

from typing import Literal

from ghstore.models._base import GhStoreModel


class HealthStatus(GhStoreModel):
    status: Literal["ok"] = "ok"
    store_configured: bool
    repo: str
    timestamp: str
