#!/usr/bin/env python3
"""
ragebait/cli.py - Command line interface for Ragebait

Usage:
    ragebait serve [--host HOST] [--port PORT] [--config PATH]
    ragebait show-config [--config PATH]
"""

import argparse
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from .config import CONFIG_PATH, load_config

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _load(args):
    path = Path(args.config).expanduser() if args.config else None
    config = load_config(path)
    if getattr(args, "host", None):
        config.server.host = args.host
    if getattr(args, "port", None):
        config.server.port = args.port
    return config


def cmd_serve(args):
    """Start the arena gateway."""
    try:
        import uvicorn
    except ImportError:
        logger.error("Serving requires uvicorn: pip install uvicorn")
        return 1

    from arena.server import create_app

    config = _load(args)
    logger.info(f"Starting arena gateway on {config.server.host}:{config.server.port}")
    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_level="info",
    )
    return 0


def cmd_show_config(args):
    """Print the effective configuration."""
    config = _load(args)
    source = args.config or CONFIG_PATH
    print(f"# effective config (file: {source})")
    for section, values in asdict(config).items():
        print(f"[{section}]")
        for key, value in values.items():
            print(f"{key} = {value!r}")
        print()
    return 0


def main():
    parser = argparse.ArgumentParser(
        prog="ragebait",
        description="Five-minute roast arenas with staked backing",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the arena gateway")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: from config, 0.0.0.0)")
    serve_parser.add_argument("--port", "-p", type=int, default=None, help="Server port (default: from config, 3001)")
    serve_parser.add_argument("--config", "-c", default=None, help=f"Config file (default: {CONFIG_PATH})")
    serve_parser.set_defaults(func=cmd_serve)

    # show-config command
    show_parser = subparsers.add_parser("show-config", help="Print the effective configuration")
    show_parser.add_argument("--config", "-c", default=None, help=f"Config file (default: {CONFIG_PATH})")
    show_parser.set_defaults(func=cmd_show_config)

    args = parser.parse_args()
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
