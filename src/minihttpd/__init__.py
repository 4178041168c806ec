"""
=============================================================================
MINIHTTPD - A MINIMAL MULTI-THREADED HTTP/1.1 SERVER
=============================================================================

One request per TCP connection, a fixed worker pool, and a handful of
fixed routes:

    GET  /                  200, empty body
    GET  /user-agent        echoes the User-Agent header
    GET  /echo/{text}       echoes {text}
    POST /files/{name}      stores the body under the file directory
    GET  /files/{name}      returns a stored file

Every response is gzip-compressed when the client sends
"Accept-Encoding: gzip".

=============================================================================
PACKAGE LAYOUT
=============================================================================

    minihttpd/
    ├── __main__.py      command line (python -m minihttpd)
    ├── config.py        ServerConfig
    ├── server.py        HTTPServer, ConnectionHandler
    ├── core/            sockets, connections, thread pool
    ├── http/            request parser, response builder, router
    ├── handlers/        the routes and file storage
    └── middleware/      access logging, gzip negotiation

Usage:

    from minihttpd import HTTPServer, ServerConfig

    HTTPServer(ServerConfig(directory="/srv/files")).run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import ConnectionHandler, HTTPServer

__all__ = ["ConnectionHandler", "HTTPServer", "ServerConfig", "__version__"]
