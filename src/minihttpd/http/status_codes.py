"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The server only ever answers with a handful of status codes, so instead of
the full RFC 7231 registry we enumerate exactly the ones the routes can
produce.

    ┌─────────┬─────────────────────────┬─────────────────────────────────┐
    │  Code   │  Reason phrase          │  Produced by                    │
    ├─────────┼─────────────────────────┼─────────────────────────────────┤
    │  200    │  OK                     │  /, /echo, /user-agent, GET file│
    │  201    │  Created                │  POST /files/{name}             │
    │  400    │  Bad Request            │  /user-agent without header     │
    │  403    │  Forbidden              │  /files/ name escaping the root │
    │  404    │  Not Found              │  unknown route, missing file    │
    │  500    │  Internal Server Error  │  file write failure, crashes    │
    └─────────┴─────────────────────────┴─────────────────────────────────┘

HTTPStatus is an IntEnum, so members compare equal to plain integers:

    HTTPStatus.NOT_FOUND == 404       # True
    f"{HTTPStatus.OK}"                # "200"

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Response status codes with their reason phrases.

    The reason phrase appears after the code in the status line:

        HTTP/1.1 404 Not Found
                 ─── ─────────
                  │      └── phrase
                  └───────── int value
    """

    OK = 200
    CREATED = 201

    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404

    INTERNAL_SERVER_ERROR = 500

    def __str__(self) -> str:
        return str(self.value)

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line."""
        return _STATUS_PHRASES[self]

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_error(self) -> bool:
        """True for 4xx and 5xx codes."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}
