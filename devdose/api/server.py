"""Uvicorn launcher for the DevDose read API."""

from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

import uvicorn

from devdose.config.logging_config import setup_logging
from devdose.config.settings import ApiSettings, get_settings

APP_FACTORY = "devdose.api.app:create_app"


def build_parser(api: ApiSettings) -> argparse.ArgumentParser:
    """Flags default to the API settings (API_HOST, PORT in the environment)."""
    parser = argparse.ArgumentParser(
        prog="devdose-api",
        description="Serve published DevDose cards over HTTP under /api.",
    )
    parser.add_argument("--host", default=api.host, help=f"Bind address (default {api.host}).")
    parser.add_argument(
        "--port", type=int, default=api.port, help=f"Bind port (default {api.port})."
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker processes; ignored with --reload.",
    )
    parser.add_argument("--reload", action="store_true", help="Restart on code changes.")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    settings = get_settings()
    args = build_parser(settings.api).parse_args(argv)
    if args.workers < 1:
        raise SystemExit("--workers must be at least 1")

    setup_logging(log_dir=settings.logs_dir)
    logger = logging.getLogger(__name__)
    logger.info(
        "Serving DevDose API on http://%s:%d/api (database %s)",
        args.host,
        args.port,
        settings.db_path,
    )

    uvicorn.run(
        APP_FACTORY,
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=None if args.reload else args.workers,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
