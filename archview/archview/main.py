from __future__ import annotations

"""Entry point for starting the archview service."""

import argparse
import asyncio
import logging
from pathlib import Path
import sys

import uvicorn

from archview import log_config

from .archive import DecodeError, load_archive
from .config import AppConfig, load_config
from .http.api import create_app
from .state import ViewerState


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve an offline chat archive viewer")
    parser.add_argument("--host", help="Interface to bind (overrides config)")
    parser.add_argument("--port", type=int, help="Port to listen on (overrides config)")
    parser.add_argument("--archive", type=Path, help="Messages archive file to open")
    parser.add_argument(
        "--server-file",
        type=Path,
        help="Server archive file with users, roles, emoji and icon",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def preload(viewer: ViewerState, cfg: AppConfig, args: argparse.Namespace) -> None:
    """Load the archive named on the command line or in the config file."""
    archive_path = args.archive or (
        Path(cfg.archive.messages) if cfg.archive.messages else None
    )
    if archive_path is None:
        return
    server_path = args.server_file or (
        Path(cfg.archive.server) if cfg.archive.server else None
    )
    logging.info("Opening archive %s", archive_path)
    data = archive_path.read_bytes()
    server = server_path.read_bytes() if server_path else None
    viewer.load(load_archive(data, server))


async def main_async(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    log_config.setup_logging(debug=args.debug)
    cfg = load_config()
    host = args.host or cfg.server.host
    port = args.port or cfg.server.port

    viewer = ViewerState()
    try:
        preload(viewer, cfg, args)
    except (OSError, DecodeError):
        logging.exception("Failed to open archive")
        sys.exit(1)

    logging.info("Starting archive viewer on %s:%s", host, port)
    app = create_app(viewer)
    config = uvicorn.Config(app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    asyncio.run(main_async())


if __name__ == "__main__":
    main()
