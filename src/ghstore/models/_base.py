"""Base model for ghstore wire shapes.

Every request/response model inherits from :class:`GhStoreModel` which
provides ``alias_generator=to_camel`` so camelCase JSON keys (``cardId``,
``storeConfigured``) map automatically to snake_case fields, and dumps
back to camelCase through :meth:`GhStoreModel.to_wire`.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class GhStoreModel(BaseModel):
    """Base for ghstore request and response models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_wire(self, **kwargs: Any) -> dict[str, Any]:
        """Dump with camelCase keys, the shape clients send and expect."""
        return self.model_dump(mode="json", by_alias=True, **kwargs)
