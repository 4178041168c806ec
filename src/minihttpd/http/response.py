"""
=============================================================================
HTTP RESPONSE BUILDING
=============================================================================

An HTTPResponse is built by a route handler, optionally switched to gzip
by content negotiation, then serialized exactly once:

    Handler returns            set_accepted_encoding()      to_bytes()
    HTTPResponse      ─────►   (gzip if the client   ─────► b"HTTP/1.1 200 OK\r\n
    HTTPResponse(               asked for it)                 Content-Type: text/plain\r\n
      status=200,                                             Content-Encoding: gzip\r\n
      headers={...},                                          Content-Length: 25\r\n
      body=b"hello",                                          \r\n
    )                                                         <gzip bytes>"

=============================================================================
CONTENT-LENGTH
=============================================================================

Content-Length is never stored in the headers mapping. It is computed by
to_bytes() from the body that is actually written, i.e. AFTER compression:

    body = b"hello" (5 bytes)    identity → Content-Length: 5
                                 gzip     → Content-Length: 25

A Content-Length header set by hand is ignored on the wire, so the header
appears exactly once.

=============================================================================
CONTENT NEGOTIATION
=============================================================================

    Accept-Encoding: deflate, gzip     → gzip      ("gzip" is a candidate)
    Accept-Encoding: gzip;q=1.0        → identity  (candidate is "gzip;q=1.0")
    Accept-Encoding: GZIP              → identity  (match is case-sensitive)
    Accept-Encoding: invalid-encoding  → identity

=============================================================================
"""

import gzip
from enum import Enum
from typing import Dict, Optional, Union

from .status_codes import HTTPStatus


class ContentEncoding(Enum):
    """Encoding applied to the response body on the wire."""

    IDENTITY = "identity"
    GZIP = "gzip"


class HTTPResponse:
    """
    An HTTP response under construction.

    Mutators return self so they can be chained:

        response = (HTTPResponse(HTTPStatus.OK)
            .set_body("hello")
            .set_content_type("text/plain"))

    Attributes:
        status:   HTTPStatus of the response.
        headers:  Header name → value, in insertion order. Names are
                  case-sensitive and unique.
        body:     Body bytes, or None for an empty response.
        encoding: Negotiated ContentEncoding.
    """

    version = "HTTP/1.1"

    def __init__(
        self,
        status: HTTPStatus = HTTPStatus.OK,
        headers: Optional[Dict[str, str]] = None,
        body: Union[str, bytes, None] = None,
    ):
        self.status = HTTPStatus(status)
        self.headers: Dict[str, str] = dict(headers or {})
        self.body: Optional[bytes] = None
        self.encoding = ContentEncoding.IDENTITY
        if body is not None:
            self.set_body(body)

    def __repr__(self) -> str:
        size = len(self.body) if self.body is not None else 0
        return (
            f"HTTPResponse(status={int(self.status)}, headers={self.headers!r}, "
            f"body=<{size} bytes>, encoding={self.encoding.value})"
        )

    @property
    def status_line(self) -> str:
        """
        The first line of the response.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 404 Not Found"
        """
        return f"{self.version} {self.status} {self.status.phrase}"

    # =========================================================================
    # MUTATORS
    # =========================================================================

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Add a header, overwriting any previous value for the same name."""
        self.headers[name] = value
        return self

    add_header = set_header

    def set_content_type(self, content_type: str) -> "HTTPResponse":
        """Set the Content-Type header."""
        return self.set_header("Content-Type", content_type)

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """
        Set the response body.

        Strings are encoded to UTF-8 bytes.
        """
        self.body = body.encode("utf-8") if isinstance(body, str) else bytes(body)
        return self

    def set_accepted_encoding(self, accept_encoding: Optional[str]) -> "HTTPResponse":
        """
        Negotiate the body encoding from a raw Accept-Encoding value.

        If "gzip" is one of the comma-separated candidates, the response
        switches to gzip and gains a "Content-Encoding: gzip" header.
        Otherwise nothing changes.

        Args:
            accept_encoding: The request's Accept-Encoding header, or None.
        """
        if not accept_encoding:
            return self

        candidates = [candidate.strip() for candidate in accept_encoding.split(",")]
        if ContentEncoding.GZIP.value in candidates:
            self.encoding = ContentEncoding.GZIP
            self.set_header("Content-Encoding", "gzip")
        return self

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def final_body(self) -> bytes:
        """
        The body bytes as they go on the wire.

        Compressed with gzip (default level) when gzip was negotiated and
        there is a body; the body verbatim otherwise; b"" when there is none.
        """
        if self.body is None:
            return b""
        if self.encoding is ContentEncoding.GZIP:
            return gzip.compress(self.body)
        return self.body

    def to_bytes(self) -> bytes:
        """
        Serialize the response for socket.sendall().

        =====================================================================
        SERIALIZATION FORMAT
        =====================================================================

            HTTP/1.1 200 OK\r\n              ← status line
            Content-Type: text/plain\r\n     ← headers, insertion order
            Content-Length: 5\r\n            ← len(final body), always last
            \r\n                             ← blank line
            hello                            ← final body

        =====================================================================
        """
        body = self.final_body()

        lines = [self.status_line]
        for name, value in self.headers.items():
            if name.lower() == "content-length":
                continue
            lines.append(f"{name}: {value}")
        lines.append(f"Content-Length: {len(body)}")
        lines.append("")

        head = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return head + body


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# One-liners for the responses the routes produce:
#
#     return text("hello")                   # 200 text/plain
#     return not_found()                     # 404, empty body
#
# =============================================================================

def ok(body: Union[str, bytes, None] = None, content_type: Optional[str] = None) -> HTTPResponse:
    """200 OK, optionally with a body and Content-Type."""
    response = HTTPResponse(HTTPStatus.OK, body=body)
    if content_type:
        response.set_content_type(content_type)
    return response


def text(content: str, content_type: str = "text/plain") -> HTTPResponse:
    """200 OK with a text body."""
    return ok(content, content_type)


def created() -> HTTPResponse:
    """201 Created, empty body."""
    return HTTPResponse(HTTPStatus.CREATED)


def bad_request() -> HTTPResponse:
    """400 Bad Request, empty body."""
    return HTTPResponse(HTTPStatus.BAD_REQUEST)


def forbidden() -> HTTPResponse:
    """403 Forbidden, empty body."""
    return HTTPResponse(HTTPStatus.FORBIDDEN)


def not_found() -> HTTPResponse:
    """404 Not Found, empty body."""
    return HTTPResponse(HTTPStatus.NOT_FOUND)


def internal_error() -> HTTPResponse:
    """500 Internal Server Error, empty body."""
    return HTTPResponse(HTTPStatus.INTERNAL_SERVER_ERROR)
