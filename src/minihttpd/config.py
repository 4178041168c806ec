"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables of the server in one dataclass. Values come from, in order of
increasing precedence:

    ┌─────────────────────────────────────────────────────────────────────┐
    │ 1. Dataclass defaults         ServerConfig()                        │
    │ 2. Environment variables      ServerConfig.from_env()               │
    │ 3. Command line flags         python -m minihttpd --port 8080       │
    └─────────────────────────────────────────────────────────────────────┘

The defaults reproduce the classic behaviour: 127.0.0.1:4221, 4 workers,
files served from /tmp/, malformed requests dropped without a reply.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    Development:
        ServerConfig(port=8080, log_level="DEBUG", directory="./data")

    Tests (ephemeral port):
        ServerConfig(port=0, directory=str(tmp_path))
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Address to bind to. "0.0.0.0" listens on all interfaces."""

    port: int = 4221
    """Port to listen on. 0 lets the OS pick a free port."""

    backlog: int = 128
    """Maximum number of connections waiting to be accepted."""

    buffer_size: int = 4096
    """Bytes requested per socket read."""

    max_request_size: int = 1024 * 1024
    """Upper bound on the bytes read for one request (headers + body)."""

    timeout: Optional[float] = 30.0
    """Read deadline per connection in seconds. None waits forever."""

    # ─────────────────────────────────────────────────────────────────────
    # WORKER POOL
    # ─────────────────────────────────────────────────────────────────────

    num_workers: int = 4
    """Fixed number of worker threads."""

    queue_size: int = 100
    """Connections waiting for a worker. 0 means unbounded."""

    # ─────────────────────────────────────────────────────────────────────
    # APPLICATION
    # ─────────────────────────────────────────────────────────────────────

    directory: str = "/tmp/"
    """Root directory for the /files/ routes."""

    reply_bad_request: bool = False
    """Answer unparseable requests with 400 instead of closing silently."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """DEBUG, INFO, WARNING, ERROR or CRITICAL."""

    log_format: str = "text"
    """Access log format: "text" or "json"."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        MINIHTTPD_HOST       Bind address      (default: 127.0.0.1)
        MINIHTTPD_PORT       Listen port       (default: 4221)
        MINIHTTPD_WORKERS    Worker threads    (default: 4)
        MINIHTTPD_DIRECTORY  File directory    (default: /tmp/)
        MINIHTTPD_TIMEOUT    Read deadline     (default: 30)
        MINIHTTPD_LOG_LEVEL  Logging level     (default: INFO)

        Usage:
            MINIHTTPD_PORT=8080 python -m minihttpd

        =====================================================================
        """
        defaults = cls()
        return cls(
            host=os.getenv("MINIHTTPD_HOST", defaults.host),
            port=int(os.getenv("MINIHTTPD_PORT", str(defaults.port))),
            num_workers=int(os.getenv("MINIHTTPD_WORKERS", str(defaults.num_workers))),
            directory=os.getenv("MINIHTTPD_DIRECTORY", defaults.directory),
            timeout=float(os.getenv("MINIHTTPD_TIMEOUT", str(defaults.timeout))),
            log_level=os.getenv("MINIHTTPD_LOG_LEVEL", defaults.log_level).upper(),
        )

    def validate(self) -> None:
        """
        Check the values before the server starts.

        Raises:
            ValueError: On the first invalid value, with a readable message.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.num_workers < 1:
            raise ValueError("num_workers must be >= 1")

        if self.queue_size < 0:
            raise ValueError("queue_size must be >= 0")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.max_request_size < self.buffer_size:
            raise ValueError("max_request_size must be >= buffer_size")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"Invalid log format: {self.log_format}")
