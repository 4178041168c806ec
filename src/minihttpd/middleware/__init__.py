"""
=============================================================================
MIDDLEWARE
=============================================================================

Cross-cutting processing applied to every request, whichever route
handles it:

LoggingMiddleware:
    One access log line per request on the "minihttpd.access" logger.

CompressionMiddleware:
    Negotiates gzip from the request's Accept-Encoding header, for error
    responses as well.

Middleware follows the Chain of Responsibility pattern: each one gets the
request and the next handler, and returns a response.

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .compression import CompressionMiddleware
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    # Base classes
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",

    # Built-in middleware
    "CompressionMiddleware",
    "LoggingMiddleware",
    "RequestLog",
]
