"""
=============================================================================
RESPONSE COMPRESSION (CONTENT NEGOTIATION)
=============================================================================

Clients announce which encodings they understand:

    Accept-Encoding: deflate, gzip

If "gzip" is among the comma-separated candidates, the response is sent
gzip-compressed with "Content-Encoding: gzip". This applies to EVERY
response, error responses included.

This middleware only negotiates. The actual compression happens when the
response is serialized (HTTPResponse.to_bytes), so that Content-Length is
computed from the compressed bytes that go on the wire.

    ┌──────────────┐   next(request)   ┌──────────────┐
    │ Compression  │ ────────────────► │ router       │
    │ Middleware   │ ◄──────────────── │ .handle      │
    └──────┬───────┘     response      └──────────────┘
           │
           ▼
    response.set_accepted_encoding(request.accept_encoding)

=============================================================================
"""

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


class CompressionMiddleware(Middleware):
    """Apply gzip negotiation from the request's Accept-Encoding header."""

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        response = next(request)
        return response.set_accepted_encoding(request.accept_encoding)
