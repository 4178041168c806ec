"""
=============================================================================
COMMAND LINE ENTRY POINT
=============================================================================

    python -m minihttpd                          # 127.0.0.1:4221, files in /tmp/
    python -m minihttpd --directory ./data       # serve /files/ from ./data
    python -m minihttpd --port 8080 --workers 8
    minihttpd --reply-bad-request --log-level DEBUG

Flags override MINIHTTPD_* environment variables, which override the
defaults (see ServerConfig.from_env).

Exit status: 0 after a clean shutdown, 1 on invalid configuration or if
the server cannot start.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import ServerConfig
from .server import HTTPServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="minihttpd",
        description="Minimal multi-threaded HTTP/1.1 server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  minihttpd --directory /srv/files          # Serve /files/ from /srv/files
  minihttpd --host 0.0.0.0 --port 8080      # Listen on all interfaces
  minihttpd --workers 8 --queue-size 500    # More concurrency
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # APPLICATION
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--directory", "-d",
        default=None,
        help="Root directory for /files/ (default: /tmp/)",
    )
    parser.add_argument(
        "--reply-bad-request",
        action="store_true",
        default=None,
        help="Answer malformed requests with 400 instead of closing the connection",
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--host", "-H", default=None, help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", "-p", type=int, default=None, help="Port to listen on (default: 4221)")
    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Seconds to wait for a client's request (default: 30)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # WORKER POOL
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--workers", "-w", type=int, default=None, help="Worker threads (default: 4)")
    parser.add_argument(
        "--queue-size",
        type=int,
        default=None,
        help="Connections waiting for a worker, 0 = unbounded (default: 100)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")

    return parser


_OVERRIDES = {
    "directory": "directory",
    "host": "host",
    "port": "port",
    "timeout": "timeout",
    "workers": "num_workers",
    "queue_size": "queue_size",
    "log_level": "log_level",
    "reply_bad_request": "reply_bad_request",
}


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment-based config with every flag that was given applied on top."""
    config = ServerConfig.from_env()
    for arg_name, field_name in _OVERRIDES.items():
        value = getattr(args, arg_name)
        if value is not None:
            setattr(config, field_name, value)
    config.validate()
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = HTTPServer(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
