"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Translates between raw bytes and structured HTTP messages:

    bytes ──► RequestParser ──► HTTPRequest ──► Router ──► HTTPResponse ──► bytes
                                                              │
                                              set_accepted_encoding / to_bytes

    request.py       HTTPRequest, RequestParser, parse errors
    response.py      HTTPResponse, gzip negotiation, convenience builders
    router.py        Router, Route (ordered, first match wins)
    status_codes.py  HTTPStatus

Only what this server speaks is implemented: one request per connection,
no keep-alive, no chunked encoding.

=============================================================================
"""

from .request import (
    HTTPParseError,
    HTTPRequest,
    InvalidHeader,
    InvalidRequestLine,
    MalformedRequest,
    RequestParser,
    parse_request,
)
from .response import (
    ContentEncoding,
    HTTPResponse,
    # Convenience functions for common responses
    ok,              # 200 OK
    text,            # 200 OK, text/plain
    created,         # 201 Created
    bad_request,     # 400 Bad Request
    forbidden,       # 403 Forbidden
    not_found,       # 404 Not Found
    internal_error,  # 500 Internal Server Error
)
from .router import Route, Router
from .status_codes import HTTPStatus

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "parse_request",
    "HTTPParseError",
    "InvalidRequestLine",
    "InvalidHeader",
    "MalformedRequest",

    # Response building
    "HTTPResponse",
    "ContentEncoding",
    "ok",
    "text",
    "created",
    "bad_request",
    "forbidden",
    "not_found",
    "internal_error",

    # Routing
    "Router",
    "Route",

    # Status codes
    "HTTPStatus",
]
