"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

This module turns the bytes read off a connection into an HTTPRequest.

    Raw bytes / text                              HTTPRequest
    ─────────────────                             ───────────
    b"POST /files/a.txt HTTP/1.1\r\n"      ──►    method  = "POST"
    b"Host: localhost:4221\r\n"                   path    = "/files/a.txt"
    b"User-Agent: curl/8.4\r\n"                   version = "HTTP/1.1"
    b"Content-Length: 5\r\n"                      headers = {"host": ...,
    b"\r\n"                                                  "user-agent": ...,
    b"hello"                                                 "content-length": "5"}
                                                  body    = "hello"

=============================================================================
PARSING RULES
=============================================================================

    1. Decode bytes as strict UTF-8 (bad bytes → MalformedRequest)
    2. Split into lines on "\n", stripping a trailing "\r" from each line
    3. No line at all → MalformedRequest
    4. Request line must be exactly three whitespace-separated tokens
       (METHOD PATH VERSION), otherwise → InvalidRequestLine
    5. Header lines up to the first empty line; each needs a ":"
       otherwise → InvalidHeader. Names are trimmed and lower-cased,
       values trimmed, the last duplicate wins.
    6. Body:
       - Content-Length declared → exactly that many bytes after the
         blank line (or whatever arrived, if less)
       - no Content-Length      → the first non-empty line after the
         blank line
       - nothing after the blank line → body is None

The parser is a pure function of its input: the same buffer always yields
an equal HTTPRequest, and a failure is always an exception, never a
partially filled request.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Union


def _parse_content_length(raw: Optional[str]) -> Optional[int]:
    # ASCII digits only: int() would also take "+5", "5_0" and "\u0663".
    if raw is None or not (raw.isascii() and raw.isdigit()):
        return None
    return int(raw)


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Carries the status code a server would answer with if it chose to
    reply to the malformed request (it does not by default, see
    ServerConfig.reply_bad_request).
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class InvalidRequestLine(HTTPParseError):
    """The first line is not METHOD SP PATH SP VERSION."""


class InvalidHeader(HTTPParseError):
    """A header line has no colon separating name and value."""


class MalformedRequest(HTTPParseError):
    """The input has no request line at all, or is not valid UTF-8."""


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed HTTP request.

    Instances are immutable: one is built per accepted connection and
    discarded once the response has been written.

    Attributes:
        method:  Request method token as sent ("GET", "POST", ...).
        path:    Request target, starts with "/". Not URL-decoded.
        version: Protocol version string ("HTTP/1.1").
        headers: Lower-cased header name → trimmed value.
        body:    Request body, or None when nothing followed the headers.
    """

    method: str
    path: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None

    @property
    def user_agent(self) -> Optional[str]:
        return self.headers.get("user-agent")

    @property
    def accept_encoding(self) -> Optional[str]:
        return self.headers.get("accept-encoding")

    @property
    def content_length(self) -> Optional[int]:
        """
        Declared Content-Length, or None if absent or not a
        non-negative integer.
        """
        return _parse_content_length(self.headers.get("content-length"))

    @property
    def body_bytes(self) -> bytes:
        """The body encoded as UTF-8, empty when there is no body."""
        return self.body.encode("utf-8") if self.body is not None else b""

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get a header value (case-insensitive lookup).

        Example:
            request.get_header("User-Agent")   # same as "user-agent"
        """
        return self.headers.get(name.strip().lower(), default)


class RequestParser:
    """
    Parses raw HTTP request data into HTTPRequest objects.

    ==========================================================================
    PARSER ARCHITECTURE
    ==========================================================================

        bytes | str
              │
              ▼
        ┌───────────────────────────────────────────────────────────────────┐
        │  1. Decode (strict UTF-8)          ── MalformedRequest            │
        │  2. Split lines                    ── MalformedRequest (empty)    │
        │  3. Request line (3 tokens)        ── InvalidRequestLine          │
        │  4. Headers until blank line       ── InvalidHeader               │
        │  5. Body (Content-Length or line)                                 │
        └───────────────────────────────────────────────────────────────────┘
              │
              ▼
        HTTPRequest

    ==========================================================================
    """

    def parse(self, data: Union[bytes, str]) -> HTTPRequest:
        """
        Parse a complete request.

        Args:
            data: Raw request bytes from the socket, or already decoded text.

        Returns:
            Parsed HTTPRequest.

        Raises:
            InvalidRequestLine, InvalidHeader, MalformedRequest
        """
        text = self._decode(data)
        if not text:
            raise MalformedRequest("Empty request: no request line")

        raw_lines = text.split("\n")
        lines = [line[:-1] if line.endswith("\r") else line for line in raw_lines]

        method, path, version = self._parse_request_line(lines[0])

        # ─────────────────────────────────────────────────────────────────
        # HEADERS
        # ─────────────────────────────────────────────────────────────────
        headers: Dict[str, str] = {}
        index = 1
        while index < len(lines) and lines[index] != "":
            name, value = self._parse_header(lines[index])
            headers[name] = value
            index += 1

        # ─────────────────────────────────────────────────────────────────
        # BODY
        # ─────────────────────────────────────────────────────────────────
        # index now points at the blank separator (or past the end when
        # the input stopped right after the headers).
        body = None
        if index < len(lines):
            body_offset = sum(len(raw) + 1 for raw in raw_lines[:index + 1])
            body = self._extract_body(text[body_offset:], lines[index + 1:], headers)

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            body=body,
        )

    @staticmethod
    def _decode(data: Union[bytes, str]) -> str:
        if isinstance(data, str):
            return data
        try:
            return bytes(data).decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedRequest(f"Request is not valid UTF-8: {e}") from e

    @staticmethod
    def _parse_request_line(line: str) -> tuple[str, str, str]:
        """
        Split "METHOD SP PATH SP VERSION" into its three tokens.

        Example: "GET /echo/abc HTTP/1.1" → ("GET", "/echo/abc", "HTTP/1.1")
        """
        parts = line.split()
        if len(parts) != 3:
            raise InvalidRequestLine(f"Invalid request line: {line!r}")
        method, path, version = parts
        return method, path, version

    @staticmethod
    def _parse_header(line: str) -> tuple[str, str]:
        name, sep, value = line.partition(":")
        if not sep:
            raise InvalidHeader(f"Invalid header line: {line!r}")
        return name.strip().lower(), value.strip()

    @staticmethod
    def _extract_body(
        remainder: str,
        body_lines: list[str],
        headers: Dict[str, str],
    ) -> Optional[str]:
        """
        Pick the body out of whatever followed the blank line.

        Args:
            remainder: Raw text after the blank separator line.
            body_lines: The same text split into CR-stripped lines.
            headers: Parsed headers (for Content-Length).
        """
        declared = _parse_content_length(headers.get("content-length"))
        if declared is not None:
            raw = remainder.encode("utf-8")[:declared]
            # A multi-byte character cut by the declared length is dropped.
            return raw.decode("utf-8", errors="ignore") or None

        for line in body_lines:
            if line:
                return line
        return None


def parse_request(data: Union[bytes, str]) -> HTTPRequest:
    """Parse one request with a default RequestParser."""
    return RequestParser().parse(data)
