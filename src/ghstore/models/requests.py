"""Request body models for the HTTP routes.

Records themselves stay opaque JSON objects; only the envelope shape is
checked here.
"""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field

from ghstore.models._base import GhStoreModel

JsonObject = dict[str, Any]


class ScansBody(GhStoreModel):
    """``POST /scans`` body: a single ``scan`` to prepend or a full ``scans`` list."""

    scan: JsonObject | None = None
    scans: list[JsonObject] | None = None


class VehiclesBody(GhStoreModel):
    """``POST /vehicles`` body: ``vehicle`` + ``cardId`` upsert or a full ``vehicles`` mapping.

    Card readers may send ``cardId`` as a number; it is keyed by its
    string form.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    vehicle: JsonObject | None = None
    card_id: str | None = Field(default=None, min_length=1)
    vehicles: dict[str, JsonObject] | None = None
