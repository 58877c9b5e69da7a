"""Service configuration for ghstore."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from ghstore._constants import API_URL, DEFAULT_BRANCH, SCANS_PATH, VEHICLES_PATH
from ghstore.exceptions import ConfigurationError

BACKENDS: frozenset[str] = frozenset({"github", "memory"})


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_str(value: str | None) -> str | None:
    """Treat blank environment values as unset."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


@dataclasses.dataclass(frozen=True)
class StoreConfig:
    """Process-wide configuration, built once at startup.

    Parameters
    ----------
    owner : str or None
        GitHub account owning the data repository.
    repo : str or None
        Name of the data repository.
    token : str or None
        Bearer credential forwarded to GitHub. Without it writes are
        refused with :class:`~ghstore.exceptions.ConfigurationError`;
        reads still go out anonymously.
    branch : str
        Branch the documents live on.
    api_url : str
        GitHub REST API base URL (override for GitHub Enterprise).
    request_timeout : float
        Total timeout in seconds for a single remote call.
    backend : str
        ``"github"`` or ``"memory"`` (in-process store for local runs).
    host : str
        Bind address of the HTTP service.
    port : int
        Listening port of the HTTP service.
    api_prefix : str
        Path prefix all routes are mounted under.
    debug : bool
        Include tracebacks in HTTP error bodies.
    max_conflict_retries : int
        How many times a rejected conditional write is retried from a
        fresh read. ``0`` keeps last-writer-wins with no retry.
    scans_path : str
        Repository path of the scans document.
    vehicles_path : str
        Repository path of the vehicles document.
    """

    owner: str | None = None
    repo: str | None = None
    token: str | None = None
    branch: str = DEFAULT_BRANCH
    api_url: str = API_URL
    request_timeout: float = 30.0
    backend: str = "github"
    host: str = "0.0.0.0"
    port: int = 3001
    api_prefix: str = "/api"
    debug: bool = False
    max_conflict_retries: int = 0
    scans_path: str = SCANS_PATH
    vehicles_path: str = VEHICLES_PATH

    @property
    def has_credential(self) -> bool:
        return bool(self.token)

    @property
    def has_repository(self) -> bool:
        return bool(self.owner and self.repo)

    @property
    def is_configured(self) -> bool:
        """Whether both reads and writes can reach the repository."""
        return self.has_credential and self.has_repository

    @property
    def repo_slug(self) -> str:
        if not self.is_configured:
            return "not configured"
        return f"{self.owner}/{self.repo}"

    @classmethod
    def from_env(cls, **overrides: Any) -> StoreConfig:
        """Create configuration from environment variables.

        Reads ``GITHUB_TOKEN``, ``GITHUB_OWNER``, ``GITHUB_REPO`` and
        ``GITHUB_BRANCH`` plus the optional ``GHSTORE_*``, ``HOST`` and
        ``PORT`` variables. Explicit keyword arguments override
        environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        StoreConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "GITHUB_OWNER": "owner",
            "GITHUB_REPO": "repo",
            "GITHUB_TOKEN": "token",
            "GITHUB_BRANCH": "branch",
            "GITHUB_API_URL": "api_url",
            "GHSTORE_BACKEND": "backend",
            "HOST": "host",
            "GHSTORE_API_PREFIX": "api_prefix",
            "GHSTORE_SCANS_PATH": "scans_path",
            "GHSTORE_VEHICLES_PATH": "vehicles_path",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = _env_str(env.get(env_key))
            if val is not None:
                config_kwargs[field_name] = val

        # numeric fields are handled separately
        timeout_env = _env_str(env.get("GHSTORE_TIMEOUT"))
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = float(timeout_env)

        port_env = _env_str(env.get("PORT"))
        if port_env is not None and "port" not in overrides:
            config_kwargs["port"] = int(port_env)

        retries_env = _env_str(env.get("GHSTORE_CONFLICT_RETRIES"))
        if retries_env is not None and "max_conflict_retries" not in overrides:
            config_kwargs["max_conflict_retries"] = int(retries_env)

        if "debug" not in overrides:
            development = env.get("NODE_ENV", "").strip().lower() == "development"
            config_kwargs["debug"] = _env_bool(env.get("GHSTORE_DEBUG"), development)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ConfigurationError(f"backend must be one of {sorted(BACKENDS)}, got {self.backend!r}")
        if self.max_conflict_retries < 0:
            raise ConfigurationError(f"max_conflict_retries must be >= 0, got {self.max_conflict_retries}")
