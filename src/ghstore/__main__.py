"""Run the ghstore HTTP service.

Usage
-----
Set environment variables and run::

    export GITHUB_TOKEN="ghp_..."
    export GITHUB_OWNER="you"
    export GITHUB_REPO="scan-data"
    python -m ghstore --port 3001

Options::

    --host HOST          Bind address (default: $HOST or 0.0.0.0)
    --port PORT          Listening port (default: $PORT or 3001)
    --backend NAME       github or memory (default: $GHSTORE_BACKEND or github)
    --verbose, -v        Enable debug logging
"""

from __future__ import annotations

import argparse
import logging
from typing import Any

from aiohttp import web

from ghstore.config import BACKENDS, StoreConfig
from ghstore.server import create_app

_logger = logging.getLogger("ghstore")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ghstore",
        description="Serve scan and vehicle documents stored in a GitHub repository.",
    )
    parser.add_argument("--host", help="Bind address")
    parser.add_argument("--port", type=int, help="Listening port")
    parser.add_argument("--backend", choices=sorted(BACKENDS), help="Storage backend")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    overrides: dict[str, Any] = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.backend:
        overrides["backend"] = args.backend
    config = StoreConfig.from_env(**overrides)

    if config.backend == "memory":
        _logger.warning("Using in-memory backend; documents are lost on exit")
    elif config.is_configured:
        _logger.info("GitHub storage enabled for %s@%s", config.repo_slug, config.branch)
    else:
        _logger.warning("GITHUB_TOKEN, GITHUB_OWNER or GITHUB_REPO not set; writes are disabled")

    web.run_app(create_app(config), host=config.host, port=config.port, print=None)


if __name__ == "__main__":
    main()
