"""Command-line entry point for the network-support log collector"""

import argparse
import logging
from typing import List, Optional

import uvicorn

from network_support.config import reload_settings


def build_parser() -> argparse.ArgumentParser:
    from network_support.main import VERSION

    parser = argparse.ArgumentParser(
        prog="network-support",
        description="Serve on-demand diagnostic log collection over HTTP",
    )
    parser.add_argument("--debug", action="store_true", help="Turn on debug logging")
    parser.add_argument("--host", default=None, help="Address to bind (default: API_HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (default: API_PORT or 8080)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``network-support`` console script."""
    args = build_parser().parse_args(argv)

    # Flags win over the environment
    overrides = {}
    if args.debug:
        overrides["debug"] = True
    if args.host:
        overrides["api_host"] = args.host
    if args.port:
        overrides["api_port"] = args.port
    settings = reload_settings(**overrides)

    if settings.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    uvicorn.run(
        "network_support.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.effective_log_level.lower()
    )


if __name__ == "__main__":
    main()
