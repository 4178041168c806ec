"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

Writes one access log line per handled request to the "minihttpd.access"
logger, separate from the server's diagnostic loggers so it can be routed
or silenced on its own:

    logging.getLogger("minihttpd.access").setLevel(logging.WARNING)

    TEXT FORMAT (default):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ "GET /echo/abc HTTP/1.1" 200 3 0.41ms                               │
    │  request line            status size duration                      │
    └─────────────────────────────────────────────────────────────────────┘

    JSON FORMAT:
    {"method": "GET", "path": "/echo/abc", "status_code": 200,
     "content_length": 3, "duration_ms": 0.41, "user_agent": "curl/8.0"}

The size is the body length before compression. The response itself is
never modified.

=============================================================================
"""

import json
import logging
import time
from dataclasses import asdict, dataclass
from typing import Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("minihttpd.access")


@dataclass
class RequestLog:
    """One access log entry."""

    method: str
    path: str
    version: str
    status_code: int
    content_length: int
    duration_ms: float
    user_agent: Optional[str]

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        return (
            f'"{self.method} {self.path} {self.version}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

    Add it FIRST so the timing covers everything downstream:

        pipeline.add(LoggingMiddleware())
        pipeline.add(CompressionMiddleware())

    Usage:
        LoggingMiddleware(log_format="json")
        LoggingMiddleware(log_level=logging.DEBUG)
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        """
        Args:
            log_format: "text" (one readable line) or "json".
            log_level: Level the access lines are logged at.
        """
        if log_format not in ("text", "json"):
            raise ValueError(f"Unknown log format: {log_format!r}")
        self.log_format = log_format
        self.log_level = log_level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        start_time = time.perf_counter()
        try:
            response = next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f'"{request.method} {request.path} {request.version}" '
                f'failed after {duration_ms:.2f}ms'
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        entry = RequestLog(
            method=request.method,
            path=request.path,
            version=request.version,
            status_code=int(response.status),
            content_length=len(response.body or b""),
            duration_ms=duration_ms,
            user_agent=request.user_agent,
        )
        self._emit(entry)
        return response

    def _emit(self, entry: RequestLog) -> None:
        if self.log_format == "json":
            message = json.dumps(entry.to_dict())
        else:
            message = entry.to_text()
        logger.log(self.log_level, message)
