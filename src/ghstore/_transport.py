"""HTTP transport for the GitHub REST API."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from ghstore._constants import ACCEPT, API_VERSION, USER_AGENT
from ghstore._redact import redact_for_log
from ghstore.config import StoreConfig
from ghstore.exceptions import RemoteStoreError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`GitHubTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, str] | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> tuple[int, Any]:
        ...


class GitHubTransport:
    """JSON-over-HTTP transport carrying the GitHub API headers and bearer token."""

    def __init__(self, config: StoreConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _build_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": ACCEPT,
            "user-agent": USER_AGENT,
            "x-github-api-version": API_VERSION,
        }
        if self._config.token:
            headers["authorization"] = f"Bearer {self._config.token}"
        return headers

    async def request_json(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, str] | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> tuple[int, Any]:
        """Send one request and return ``(status, decoded_json_body)``.

        Status codes are returned as-is; mapping them to errors is the
        endpoint module's job. Only failures that leave no usable
        response (network errors, timeouts, non-JSON bodies) raise here.
        """
        url = f"{self._config.api_url.rstrip('/')}{endpoint}"
        headers = self._build_headers()

        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug(
                "%s %s params=%s headers=%s body=%s",
                method,
                url,
                dict(params or {}),
                redact_for_log(headers),
                redact_for_log(payload),
            )

        try:
            async with self._http.request(
                method,
                url,
                params=params,
                json=payload,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except asyncio.TimeoutError as exc:
            raise RemoteStoreError(
                f"{method} {endpoint} timed out after {self._config.request_timeout}s",
                path=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise RemoteStoreError(
                f"{method} {endpoint} failed: {exc}",
                path=endpoint,
            ) from exc

        if not text.strip():
            return status, {}

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise RemoteStoreError(
                f"Invalid JSON from {endpoint} (HTTP {status}): {text[:200]}",
                status_code=status,
                path=endpoint,
            ) from exc

        _logger.debug("HTTP %s from %s: %s", status, endpoint, redact_for_log(body))
        return status, body
