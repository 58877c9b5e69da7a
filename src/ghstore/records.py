"""Scan log and vehicle registry on top of the document store.

Mutations are plain functions over documents so they can be tested and
reused without a store. Commit messages carry the mutation kind, the
affected card id where there is one, and an ISO-8601 UTC timestamp.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from ghstore.config import StoreConfig
from ghstore.document_store import DocumentStore, scans_document, vehicles_document

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


def iso_timestamp(moment: datetime) -> str:
    """Format like ``2026-10-19T08:15:00.123Z``."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ------------------------------------------------------------------
# Pure mutations
# ------------------------------------------------------------------


def prepend_scan(scans: list[Any], scan: dict[str, Any]) -> list[Any]:
    """Newest first. Duplicate card ids are kept."""
    return [scan, *scans]


def upsert_vehicle(vehicles: dict[str, Any], card_id: str, vehicle: dict[str, Any]) -> dict[str, Any]:
    updated = dict(vehicles)
    updated[card_id] = vehicle
    return updated


def remove_vehicle(vehicles: dict[str, Any], card_id: str) -> dict[str, Any]:
    """Drop *card_id*; missing keys are not an error."""
    return {key: value for key, value in vehicles.items() if key != card_id}


def replace_document(replacement: Any) -> Callable[[Any], Any]:
    return lambda _current: replacement


# ------------------------------------------------------------------
# Collections
# ------------------------------------------------------------------


class ScanLog:
    """Newest-first list of scan records."""

    def __init__(self, store: DocumentStore, config: StoreConfig, *, clock: Clock = utcnow) -> None:
        self._store = store
        self._spec = scans_document(config)
        self._clock = clock

    async def list_scans(self) -> list[Any]:
        document = await self._store.load(self._spec)
        return list(document.content)

    async def add(self, scan: dict[str, Any]) -> list[Any]:
        card_id = scan.get("cardId")
        message = f"Add scan: {card_id} - {iso_timestamp(self._clock())}"
        written = await self._store.update(self._spec, lambda scans: prepend_scan(scans, scan), message)
        return list(written.content)

    async def replace(self, scans: list[Any]) -> list[Any]:
        message = f"Update scans - {iso_timestamp(self._clock())}"
        written = await self._store.update(self._spec, replace_document(list(scans)), message)
        return list(written.content)


class VehicleRegistry:
    """Vehicle records keyed by card id."""

    def __init__(self, store: DocumentStore, config: StoreConfig, *, clock: Clock = utcnow) -> None:
        self._store = store
        self._spec = vehicles_document(config)
        self._clock = clock

    async def list_vehicles(self) -> dict[str, Any]:
        document = await self._store.load(self._spec)
        return dict(document.content)

    async def upsert(self, card_id: str, vehicle: dict[str, Any]) -> dict[str, Any]:
        timestamp = iso_timestamp(self._clock())

        # Decided on the document as read, before the new key is set.
        def message(current: Any) -> str:
            verb = "Update" if card_id in current else "Add"
            return f"{verb} vehicle: {card_id} - {timestamp}"

        written = await self._store.update(
            self._spec,
            lambda vehicles: upsert_vehicle(vehicles, card_id, vehicle),
            message,
        )
        return dict(written.content)

    async def replace(self, vehicles: dict[str, Any]) -> dict[str, Any]:
        message = f"Update vehicles - {iso_timestamp(self._clock())}"
        written = await self._store.update(self._spec, replace_document(dict(vehicles)), message)
        return dict(written.content)

    async def delete(self, card_id: str) -> dict[str, Any]:
        message = f"Delete vehicle: {card_id} - {iso_timestamp(self._clock())}"
        written = await self._store.update(
            self._spec,
            lambda vehicles: remove_vehicle(vehicles, card_id),
            message,
        )
        return dict(written.content)
