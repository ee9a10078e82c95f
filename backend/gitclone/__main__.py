# backend/gitclone/__main__.py
from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

import uvicorn

from gitclone.config import get_settings
from gitclone.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="gitclone",
        description="HTTP service that clones a remote git repository onto local storage.",
    )
    parser.add_argument("--host", default=settings.host, help="the address gitclone will bind to")
    parser.add_argument("--port", type=int, default=settings.port, help="the port gitclone will listen on")
    parser.add_argument(
        "--directory",
        default=settings.clone_directory,
        help="the place where gitclone will clone the repository",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Entry point for running the service directly.

    Examples:
      python -m gitclone --port 8080 --directory /tmp/checkout
      GITCLONE_STRICT_HOST_KEY_CHECKING=true python -m gitclone
    """
    args = build_parser().parse_args(argv)

    # Flags win over the environment; the app reads the cached settings.
    settings = get_settings()
    settings.host = args.host
    settings.port = args.port
    settings.clone_directory = args.directory

    configure_logging(settings.log_level)

    from gitclone.main import app

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main(sys.argv[1:])
