from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

from ghstore import codec
from ghstore.blob_store import MemoryBlobStore
from ghstore.config import StoreConfig
from ghstore.document_store import DocumentStore, scans_document, vehicles_document
from ghstore.exceptions import CodecError, ConfigurationError, ConflictError, NotFoundError, RemoteStoreError
from ghstore.models import RemoteFile
from ghstore.records import prepend_scan, remove_vehicle, upsert_vehicle

CONFIG = StoreConfig(owner="fleet", repo="scan-data", token="ghp_abc")
SCANS = scans_document(CONFIG)
VEHICLES = vehicles_document(CONFIG)


@dataclass
class FakeBlobStore:
    """Scripted backend recording every call."""

    files: dict[str, RemoteFile] = field(default_factory=dict)
    fetch_error: Exception | None = None
    write_errors: list[Exception] = field(default_factory=list)
    writable: bool = True
    calls: list[tuple[str, str]] = field(default_factory=list)
    writes: list[dict[str, Any]] = field(default_factory=list)

    def seed(self, path: str, document: Any, revision: str) -> None:
        self.files[path] = RemoteFile(path=path, revision=revision, content=codec.encode(document))

    def ensure_writable(self) -> None:
        if not self.writable:
            raise ConfigurationError("GitHub token not configured")

    async def fetch(self, path: str) -> RemoteFile:
        self.calls.append(("fetch", path))
        if self.fetch_error is not None:
            raise self.fetch_error
        try:
            return self.files[path]
        except KeyError:
            raise NotFoundError(path) from None

    async def write(self, path: str, content: bytes, message: str, revision: str | None) -> str:
        self.calls.append(("write", path))
        self.writes.append(
            {"path": path, "document": codec.decode(content), "message": message, "revision": revision}
        )
        if self.write_errors:
            raise self.write_errors.pop(0)
        new_revision = f"rev-{len(self.writes)}"
        self.files[path] = RemoteFile(path=path, revision=new_revision, content=content)
        return new_revision


@pytest.mark.asyncio
async def test_not_found_yields_empty_default_and_create_without_revision() -> None:
    blobs = FakeBlobStore()
    store = DocumentStore(blobs)

    loaded = await store.load(SCANS)
    assert loaded.content == []
    assert loaded.revision is None

    written = await store.update(SCANS, lambda scans: prepend_scan(scans, {"cardId": "A1"}), "Add scan: A1")

    assert written.content == [{"cardId": "A1"}]
    assert blobs.writes[0]["revision"] is None
    assert blobs.writes[0]["path"] == "data/scans.json"
    assert blobs.writes[0]["document"] == [{"cardId": "A1"}]


@pytest.mark.asyncio
async def test_existing_document_prepends_and_writes_with_captured_revision() -> None:
    blobs = FakeBlobStore()
    blobs.seed("data/scans.json", [{"cardId": "A1"}], "sha123")
    store = DocumentStore(blobs)

    written = await store.update(SCANS, lambda scans: prepend_scan(scans, {"cardId": "B2"}), "Add scan: B2")

    assert written.content == [{"cardId": "B2"}, {"cardId": "A1"}]
    assert written.revision == "rev-1"
    assert blobs.writes[0]["revision"] == "sha123"
    assert blobs.writes[0]["message"] == "Add scan: B2"


@pytest.mark.asyncio
async def test_vehicle_upsert_then_delete() -> None:
    blobs = FakeBlobStore()
    blobs.seed("data/vehicles.json", {"V1": {"plate": "AB-1"}}, "sha1")
    store = DocumentStore(blobs)

    upserted = await store.update(
        VEHICLES, lambda vehicles: upsert_vehicle(vehicles, "V9", {"plate": "ZZ-9"}), "Add vehicle: V9"
    )
    assert upserted.content == {"V1": {"plate": "AB-1"}, "V9": {"plate": "ZZ-9"}}

    deleted = await store.update(VEHICLES, lambda vehicles: remove_vehicle(vehicles, "V1"), "Delete vehicle: V1")
    assert deleted.content == {"V9": {"plate": "ZZ-9"}}
    assert blobs.writes[1]["revision"] == "rev-1"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("spec", "mutation"),
    [
        (SCANS, lambda scans: prepend_scan(scans, {"cardId": "A1"})),
        (VEHICLES, lambda vehicles: upsert_vehicle(vehicles, "V1", {"plate": "AB-1"})),
        (VEHICLES, lambda vehicles: remove_vehicle(vehicles, "V1")),
    ],
)
async def test_not_found_path_matches_mutation_of_empty_default(spec: Any, mutation: Any) -> None:
    store = DocumentStore(FakeBlobStore())

    written = await store.update(spec, mutation, "change")

    assert written.content == mutation(spec.empty())


@pytest.mark.asyncio
async def test_conflict_is_not_retried_and_concurrent_version_survives() -> None:
    blobs = MemoryBlobStore({"data/scans.json": codec.encode([{"cardId": "A1"}])})
    store = DocumentStore(blobs)
    stale = await store.load(SCANS)

    # A concurrent writer lands between our read and our write.
    await store.update(SCANS, lambda scans: prepend_scan(scans, {"cardId": "OTHER"}), "Add scan: OTHER")

    with pytest.raises(ConflictError):
        await blobs.write("data/scans.json", codec.encode([{"cardId": "MINE"}]), "Add scan: MINE", stale.revision)

    current = await store.load(SCANS)
    assert current.content == [{"cardId": "OTHER"}, {"cardId": "A1"}]
    assert len(blobs.commits) == 1


@pytest.mark.asyncio
async def test_write_conflict_surfaces_without_retry() -> None:
    blobs = FakeBlobStore()
    blobs.seed("data/scans.json", [], "sha1")
    blobs.write_errors.append(ConflictError("does not match", status_code=409, path="data/scans.json"))
    store = DocumentStore(blobs)

    with pytest.raises(ConflictError):
        await store.update(SCANS, lambda scans: prepend_scan(scans, {"cardId": "A1"}), "Add scan: A1")

    assert blobs.calls == [("fetch", "data/scans.json"), ("write", "data/scans.json")]


@pytest.mark.asyncio
async def test_conflict_retry_rereads_and_reapplies_when_enabled() -> None:
    blobs = FakeBlobStore()
    blobs.seed("data/scans.json", [{"cardId": "A1"}], "sha1")
    blobs.write_errors.append(ConflictError("does not match", status_code=409, path="data/scans.json"))
    store = DocumentStore(blobs, max_conflict_retries=2)

    written = await store.update(SCANS, lambda scans: prepend_scan(scans, {"cardId": "B2"}), "Add scan: B2")

    assert written.content == [{"cardId": "B2"}, {"cardId": "A1"}]
    assert [kind for kind, _ in blobs.calls] == ["fetch", "write", "fetch", "write"]


@pytest.mark.asyncio
async def test_conflict_retry_gives_up_after_limit() -> None:
    blobs = FakeBlobStore()
    blobs.write_errors.extend(
        ConflictError("does not match", status_code=409, path="data/scans.json") for _ in range(3)
    )
    store = DocumentStore(blobs, max_conflict_retries=1)

    with pytest.raises(ConflictError):
        await store.update(SCANS, lambda scans: scans, "noop")

    assert len(blobs.writes) == 2


@pytest.mark.asyncio
async def test_missing_credential_fails_before_any_remote_call() -> None:
    blobs = FakeBlobStore(writable=False)
    store = DocumentStore(blobs)

    with pytest.raises(ConfigurationError):
        await store.update(SCANS, lambda scans: prepend_scan(scans, {"cardId": "A1"}), "Add scan: A1")

    assert blobs.calls == []


@pytest.mark.asyncio
async def test_remote_failure_on_read_aborts_before_write() -> None:
    blobs = FakeBlobStore(fetch_error=RemoteStoreError("GET failed: Bad credentials", status_code=401))
    store = DocumentStore(blobs)

    with pytest.raises(RemoteStoreError) as exc_info:
        await store.update(VEHICLES, lambda vehicles: remove_vehicle(vehicles, "V1"), "Delete vehicle: V1")

    assert exc_info.value.status_code == 401
    assert blobs.writes == []


@pytest.mark.asyncio
async def test_corrupt_document_is_not_replaced_with_default() -> None:
    blobs = FakeBlobStore()
    blobs.files["data/scans.json"] = RemoteFile(path="data/scans.json", revision="sha1", content=b"%%%")
    store = DocumentStore(blobs)

    with pytest.raises(CodecError):
        await store.load(SCANS)
    with pytest.raises(CodecError):
        await store.update(SCANS, lambda scans: prepend_scan(scans, {"cardId": "A1"}), "Add scan: A1")

    assert blobs.writes == []


@pytest.mark.asyncio
async def test_mutation_receives_a_private_copy() -> None:
    blobs = FakeBlobStore()
    blobs.seed("data/vehicles.json", {"V1": {"plate": "AB-1"}}, "sha1")
    store = DocumentStore(blobs)

    def mutate(vehicles: Any) -> Any:
        vehicles["V1"]["plate"] = "CHANGED"
        return vehicles

    loaded_before = await store.load(VEHICLES)
    await store.update(VEHICLES, mutate, "Update vehicle: V1")

    assert loaded_before.content == {"V1": {"plate": "AB-1"}}
    assert blobs.writes[0]["document"] == {"V1": {"plate": "CHANGED"}}


@pytest.mark.asyncio
async def test_message_builder_sees_document_before_mutation() -> None:
    blobs = FakeBlobStore()
    blobs.seed("data/vehicles.json", {"V1": {}}, "sha1")
    store = DocumentStore(blobs)

    await store.update(
        VEHICLES,
        lambda vehicles: upsert_vehicle(vehicles, "V2", {}),
        lambda current: f"keys before: {sorted(current)}",
    )

    assert blobs.writes[0]["message"] == "keys before: ['V1']"
