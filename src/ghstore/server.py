"""aiohttp application exposing the scan log and vehicle registry.

Handlers are glue: parse the request, call one collection method, and
serialize the result as JSON. All error-to-status mapping lives in
:func:`error_middleware`.
"""

from __future__ import annotations

import contextlib
import json
import logging
import traceback
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from aiohttp import web
from pydantic import ValidationError

from ghstore.blob_store import BlobStore, GitHubBlobStore, MemoryBlobStore
from ghstore.config import StoreConfig
from ghstore.document_store import DocumentStore
from ghstore.exceptions import (
    CodecError,
    ConfigurationError,
    ConflictError,
    GhStoreError,
    InvalidRequestError,
    RemoteStoreError,
)
from ghstore.models import HealthStatus, ScansBody, VehiclesBody
from ghstore.records import Clock, ScanLog, VehicleRegistry, iso_timestamp, utcnow

_logger = logging.getLogger(__name__)

CONFIG_KEY = web.AppKey("config", StoreConfig)
CLOCK_KEY = web.AppKey("clock", Callable)
SCANS_KEY = web.AppKey("scans", ScanLog)
VEHICLES_KEY = web.AppKey("vehicles", VehicleRegistry)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

_CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

# Most specific first: ConflictError is a RemoteStoreError.
_ERROR_STATUSES: tuple[tuple[type[GhStoreError], int], ...] = (
    (InvalidRequestError, 400),
    (ConflictError, 409),
    (ConfigurationError, 503),
    (RemoteStoreError, 502),
    (CodecError, 500),
    (GhStoreError, 500),
)


def _status_for(exc: GhStoreError) -> int:
    for exc_type, status in _ERROR_STATUSES:
        if isinstance(exc, exc_type):
            return status
    return 500


def _error_response(request: web.Request, status: int, message: str, details: Any = None) -> web.Response:
    body: dict[str, Any] = {"error": message}
    if details is None and request.app[CONFIG_KEY].debug and status >= 500:
        details = traceback.format_exc()
    if details is not None:
        body["details"] = details
    return web.json_response(body, status=status)


# ------------------------------------------------------------------
# Middlewares
# ------------------------------------------------------------------


@web.middleware
async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Permissive CORS; preflight requests are answered without routing."""
    if request.method == "OPTIONS":
        response: web.StreamResponse = web.Response(status=200)
    else:
        response = await handler(request)
    response.headers.update(_CORS_HEADERS)
    return response


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    try:
        return await handler(request)
    except web.HTTPException as exc:
        if exc.status < 400:
            raise
        return _error_response(request, exc.status, exc.reason)
    except InvalidRequestError as exc:
        return _error_response(request, 400, str(exc), exc.details)
    except GhStoreError as exc:
        status = _status_for(exc)
        _logger.error("%s %s failed (%s): %s", request.method, request.path, status, exc)
        return _error_response(request, status, str(exc))
    except Exception as exc:
        _logger.exception("Unhandled error in %s %s", request.method, request.path)
        return _error_response(request, 500, str(exc) or "Internal server error")


# ------------------------------------------------------------------
# Request helpers
# ------------------------------------------------------------------


async def _read_json_object(request: web.Request) -> dict[str, Any]:
    text = await request.text()
    try:
        body = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidRequestError("Invalid JSON body", details=str(exc)) from exc
    if not isinstance(body, dict):
        raise InvalidRequestError("Invalid request body")
    return body


def _validate(model: type[ScansBody] | type[VehiclesBody], body: dict[str, Any]) -> Any:
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        raise InvalidRequestError(
            "Invalid request body",
            details=exc.errors(include_url=False, include_context=False),
        ) from exc


def _success() -> web.Response:
    return web.json_response({"success": True})


def _card_id(request: web.Request) -> str:
    card_id = request.match_info.get("card_id") or request.query.get("cardId", "")
    if not card_id:
        raise InvalidRequestError("cardId query parameter is required")
    return card_id


# ------------------------------------------------------------------
# Handlers
# ------------------------------------------------------------------


async def get_scans(request: web.Request) -> web.Response:
    scans = await request.app[SCANS_KEY].list_scans()
    return web.json_response({"scans": scans})


async def post_scans(request: web.Request) -> web.Response:
    body: ScansBody = _validate(ScansBody, await _read_json_object(request))
    scan_log = request.app[SCANS_KEY]
    if body.scan is not None:
        await scan_log.add(body.scan)
        return _success()
    if body.scans is not None:
        await scan_log.replace(body.scans)
        return _success()
    raise InvalidRequestError("Invalid request body")


async def add_scan(request: web.Request) -> web.Response:
    """Legacy route: the body is the scan itself."""
    scan = await _read_json_object(request)
    await request.app[SCANS_KEY].add(scan)
    return _success()


async def get_vehicles(request: web.Request) -> web.Response:
    vehicles = await request.app[VEHICLES_KEY].list_vehicles()
    return web.json_response({"vehicles": vehicles})


async def post_vehicles(request: web.Request) -> web.Response:
    body: VehiclesBody = _validate(VehiclesBody, await _read_json_object(request))
    registry = request.app[VEHICLES_KEY]
    if body.vehicle is not None and body.card_id:
        await registry.upsert(body.card_id, body.vehicle)
        return _success()
    if body.vehicles is not None:
        await registry.replace(body.vehicles)
        return _success()
    raise InvalidRequestError("Invalid request body")


async def put_vehicle(request: web.Request) -> web.Response:
    """Legacy route: ``POST /vehicles/{cardId}`` with the vehicle as the body."""
    card_id = _card_id(request)
    vehicle = await _read_json_object(request)
    await request.app[VEHICLES_KEY].upsert(card_id, vehicle)
    return _success()


async def delete_vehicle(request: web.Request) -> web.Response:
    card_id = _card_id(request)
    await request.app[VEHICLES_KEY].delete(card_id)
    return _success()


async def health(request: web.Request) -> web.Response:
    config = request.app[CONFIG_KEY]
    if config.backend == "memory":
        configured, repo = True, "memory"
    else:
        configured, repo = config.is_configured, config.repo_slug
    status = HealthStatus(
        store_configured=configured,
        repo=repo,
        timestamp=iso_timestamp(request.app[CLOCK_KEY]()),
    )
    return web.json_response(status.to_wire())


# ------------------------------------------------------------------
# Application factory
# ------------------------------------------------------------------


def _normalize_prefix(prefix: str) -> str:
    prefix = prefix.strip().rstrip("/")
    if prefix and not prefix.startswith("/"):
        prefix = f"/{prefix}"
    return prefix


def setup_routes(app: web.Application, prefix: str) -> None:
    prefix = _normalize_prefix(prefix)
    app.router.add_get(f"{prefix}/scans", get_scans)
    app.router.add_post(f"{prefix}/scans", post_scans)
    app.router.add_post(f"{prefix}/scans/add", add_scan)
    app.router.add_get(f"{prefix}/vehicles", get_vehicles)
    app.router.add_post(f"{prefix}/vehicles", post_vehicles)
    app.router.add_delete(f"{prefix}/vehicles", delete_vehicle)
    app.router.add_post(f"{prefix}/vehicles/{{card_id}}", put_vehicle)
    app.router.add_delete(f"{prefix}/vehicles/{{card_id}}", delete_vehicle)
    app.router.add_get(f"{prefix}/health", health)


def _store_context(
    blob_store: BlobStore | None,
) -> Callable[[web.Application], AsyncIterator[None]]:
    async def context(app: web.Application) -> AsyncIterator[None]:
        config = app[CONFIG_KEY]
        async with contextlib.AsyncExitStack() as stack:
            blobs = blob_store
            if blobs is None:
                if config.backend == "memory":
                    blobs = MemoryBlobStore()
                else:
                    blobs = await stack.enter_async_context(GitHubBlobStore(config))
            store = DocumentStore(blobs, max_conflict_retries=config.max_conflict_retries)
            app[SCANS_KEY] = ScanLog(store, config, clock=app[CLOCK_KEY])
            app[VEHICLES_KEY] = VehicleRegistry(store, config, clock=app[CLOCK_KEY])
            yield

    return context


def create_app(
    config: StoreConfig,
    *,
    blob_store: BlobStore | None = None,
    clock: Clock = utcnow,
) -> web.Application:
    """Build the application.

    Parameters
    ----------
    config : StoreConfig
        Process configuration.
    blob_store : BlobStore or None
        Backend to use instead of the one ``config.backend`` selects.
    clock : callable
        Source of timestamps for commit messages and the health check.
    """
    app = web.Application(middlewares=[cors_middleware, error_middleware])
    app[CONFIG_KEY] = config
    app[CLOCK_KEY] = clock
    app.cleanup_ctx.append(_store_context(blob_store))
    setup_routes(app, config.api_prefix)
    return app
