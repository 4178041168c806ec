"""
=============================================================================
APPLICATION ROUTES
=============================================================================

The fixed route table of the server, evaluated top to bottom, first match
wins:

    ┌───┬────────┬───────────────┬───────────────────────────────────────────┐
    │ # │ Method │ Path          │ Behaviour                                 │
    ├───┼────────┼───────────────┼───────────────────────────────────────────┤
    │ 1 │ any    │ /             │ 200, empty body                           │
    │ 2 │ any    │ /user-agent   │ 200 text = User-Agent, 400 if missing     │
    │ 3 │ any    │ /echo/*message│ 200 text = rest of the path               │
    │ 4 │ POST   │ /files/*name  │ write body → 201, I/O failure → 500       │
    │ 5 │ any    │ /files/*name  │ read file → 200 octet-stream, else 404    │
    │ - │        │ anything else │ 404                                       │
    └───┴────────┴───────────────┴───────────────────────────────────────────┘

A /files/ name that resolves outside the configured directory is answered
with 403 Forbidden by both file routes.

Gzip negotiation is NOT done here; it is applied to every response
afterwards (see middleware.compression).

=============================================================================
"""

import logging
from pathlib import Path
from typing import Union

from ..http.request import HTTPRequest
from ..http.response import (
    HTTPResponse,
    bad_request,
    created,
    forbidden,
    internal_error,
    not_found,
    ok,
    text,
)
from ..http.router import Router
from .files import FileStore, PathTraversalError


logger = logging.getLogger(__name__)

OCTET_STREAM = "application/octet-stream"


class AppRoutes:
    """
    Handlers for the server's routes, bound to one FileStore.

    Usage:
        routes = AppRoutes(FileStore("/tmp/"))
        router = routes.router()
        response = router.handle(request)
    """

    def __init__(self, files: FileStore):
        self.files = files

    def router(self) -> Router:
        """Build the ordered route table."""
        router = Router()
        router.add_route("/", self.index)
        router.add_route("/user-agent", self.user_agent)
        router.add_route("/echo/*message", self.echo)
        router.add_route("/files/*name", self.upload_file, method="POST")
        router.add_route("/files/*name", self.download_file)
        return router

    def index(self, request: HTTPRequest) -> HTTPResponse:
        return ok()

    def user_agent(self, request: HTTPRequest) -> HTTPResponse:
        """Reflect the User-Agent header back as plain text."""
        agent = request.user_agent
        if agent is None:
            return bad_request()
        return text(agent)

    def echo(self, request: HTTPRequest, message: str) -> HTTPResponse:
        return text(message)

    def upload_file(self, request: HTTPRequest, name: str) -> HTTPResponse:
        """Store the request body under `name`. A missing body stores an empty file."""
        try:
            written = self.files.write(name, request.body_bytes)
        except PathTraversalError:
            return forbidden()
        except OSError as e:
            logger.error(f"Failed to write file {name!r}: {e}")
            return internal_error()

        logger.info(f"Stored {written} bytes in {name!r}")
        return created()

    def download_file(self, request: HTTPRequest, name: str) -> HTTPResponse:
        """Return the contents of `name` as application/octet-stream."""
        try:
            content = self.files.read(name)
        except PathTraversalError:
            return forbidden()
        except OSError as e:
            logger.debug(f"Cannot read file {name!r}: {e}")
            return not_found()

        return ok(content, OCTET_STREAM)


def create_router(file_directory: Union[str, Path]) -> Router:
    """Build the route table serving files from `file_directory`."""
    return AppRoutes(FileStore(file_directory)).router()


def handle(request: HTTPRequest, file_directory: Union[str, Path]) -> HTTPResponse:
    """
    Route one request.

    The file directory is passed in explicitly rather than read from
    process-wide state.

    Args:
        request: Parsed request.
        file_directory: Root directory for the /files/ routes.

    Returns:
        The route's response, before encoding negotiation.
    """
    return create_router(file_directory).handle(request)
