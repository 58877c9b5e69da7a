"""Remote file model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class RemoteFile(BaseModel):
    """One stored document as returned by the remote store.

    ``content`` is the raw base64 blob exactly as stored; decoding it
    into a document is the codec's job. ``revision`` is only good for
    the single write that follows the read that produced it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str
    revision: str
    content: bytes

    @field_validator("revision")
    @classmethod
    def _require_revision(cls, value: str) -> str:
        if not value:
            raise ValueError("revision must be a non-empty token")
        return value
