"""
=============================================================================
HTTP SERVER
=============================================================================

Wires the pieces together:

    SocketServer.accept()                              (main thread)
        │
        ▼ ThreadPool.execute(connection_handler, conn)
    ConnectionHandler(conn)                            (worker thread)
        │
        ├─► conn.read_request()          bytes off the socket
        ├─► bytes.decode("utf-8")        strict, failure = read failure
        ├─► parse_request(text)          HTTPRequest or HTTPParseError
        ├─► handler(request)             middleware → router → route
        ├─► response.to_bytes()          gzip + Content-Length
        └─► conn.send_response(...)      exactly once, then close

=============================================================================
FAILURE HANDLING PER CONNECTION
=============================================================================

    ┌──────────────────────────────┬──────────────────────────────────────┐
    │ Failure                      │ Outcome                              │
    ├──────────────────────────────┼──────────────────────────────────────┤
    │ client closes, sends nothing │ closed, nothing logged above DEBUG   │
    │ read timeout / too large     │ WARNING, closed without a response   │
    │ invalid UTF-8                │ WARNING, closed without a response   │
    │ HTTPParseError               │ WARNING, closed without a response,  │
    │                              │ or 400 if reply_bad_request is set   │
    │ exception in a handler       │ ERROR with traceback, 500 response   │
    │ send fails                   │ WARNING, connection abandoned        │
    └──────────────────────────────┴──────────────────────────────────────┘

None of these reach the worker thread, which moves on to the next
connection.

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .config import ServerConfig
from .core import Connection, RequestTooLargeError, SocketServer, ThreadPool
from .handlers import create_router
from .http import HTTPParseError, HTTPResponse, bad_request, internal_error, parse_request
from .http.router import Router
from .middleware import CompressionMiddleware, LoggingMiddleware, Middleware, MiddlewarePipeline, NextHandler


logger = logging.getLogger(__name__)


class ConnectionHandler:
    """
    Serves exactly one request on one connection, then closes it.

    Usage:
        handler = ConnectionHandler(pipeline.wrap(router.handle))
        pool.execute(handler, conn)
    """

    def __init__(self, handler: NextHandler, reply_bad_request: bool = False):
        """
        Args:
            handler: Turns a parsed request into a response (the router,
                     usually wrapped in middleware).
            reply_bad_request: Answer unparseable requests with 400 instead
                               of closing the connection silently.
        """
        self.handler = handler
        self.reply_bad_request = reply_bad_request

    def __call__(self, conn: Connection) -> None:
        with conn:
            data = self._read(conn)
            if data is None:
                return

            try:
                request = parse_request(data)
            except HTTPParseError as e:
                logger.warning(f"[{conn.id}] Failed to parse request from {conn.client_ip}:{conn.client_port}: {e}")
                if self.reply_bad_request:
                    conn.send_response(bad_request().to_bytes())
                return

            logger.debug(f"[{conn.id}] {request.method} {request.path}")

            try:
                response = self.handler(request)
            except Exception as e:
                logger.exception(f"[{conn.id}] Handler error: {e}")
                response = internal_error().set_accepted_encoding(request.accept_encoding)

            self._send(conn, response)

    def _read(self, conn: Connection) -> Optional[str]:
        """Read and decode the request text, or None if there is nothing to serve."""
        try:
            raw = conn.read_request()
        except TimeoutError as e:
            logger.warning(f"[{conn.id}] {e}, dropping connection from {conn.client_ip}:{conn.client_port}")
            return None
        except RequestTooLargeError as e:
            logger.warning(f"[{conn.id}] {e}, dropping connection from {conn.client_ip}:{conn.client_port}")
            return None
        except OSError as e:
            logger.warning(f"[{conn.id}] Failed to read from {conn.client_ip}:{conn.client_port}: {e}")
            return None

        if raw is None:
            logger.debug(f"[{conn.id}] Client closed without sending a request")
            return None

        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.warning(f"[{conn.id}] Failed to read request: invalid UTF-8 ({e.reason})")
            return None

    def _send(self, conn: Connection, response: HTTPResponse) -> None:
        if not conn.send_response(response.to_bytes()):
            logger.warning(f"[{conn.id}] Response {int(response.status)} not delivered")


class HTTPServer:
    """
    The complete server: listener, worker pool, routes and middleware.

    Usage:
        server = HTTPServer(ServerConfig(port=4221, directory="/srv/files"))
        server.run()    # Blocks until SIGINT/SIGTERM or shutdown()

    Extra middleware runs outside the defaults (access log, gzip):

        server.use(MyMiddleware())
    """

    SHUTDOWN_TIMEOUT = 30.0

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            num_workers=self.config.num_workers,
            queue_size=self.config.queue_size,
        )
        self._router = create_router(self.config.directory)
        self._extra_middleware = MiddlewarePipeline()
        self._connection_handler: Optional[ConnectionHandler] = None

    def use(self, middleware: Middleware) -> "HTTPServer":
        """Add middleware. Returns self for chaining."""
        self._extra_middleware.add(middleware)
        return self

    @property
    def router(self) -> Router:
        return self._router

    @property
    def thread_pool(self) -> ThreadPool:
        return self._thread_pool

    @property
    def address(self) -> Tuple[str, int]:
        """(host, port) actually bound, once the server is listening."""
        return self._socket_server.address

    def _build_pipeline(self) -> MiddlewarePipeline:
        pipeline = MiddlewarePipeline()
        for middleware in self._extra_middleware:
            pipeline.add(middleware)
        pipeline.add(LoggingMiddleware(log_format=self.config.log_format))
        pipeline.add(CompressionMiddleware())
        return pipeline

    def run(self):
        """Start serving. Blocks until shut down."""
        self._setup_logging()

        pipeline = self._build_pipeline()
        self._connection_handler = ConnectionHandler(
            pipeline.wrap(self._router.handle),
            reply_bad_request=self.config.reply_bad_request,
        )
        self._thread_pool.start()

        logger.info(
            f"Serving files from {self.config.directory} with "
            f"{self.config.num_workers} workers"
        )

        try:
            self._socket_server.start(self._dispatch)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask a running server to stop. run() returns once in-flight requests finish."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_for_shutdown(timeout)

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("minihttpd").setLevel(level)

    def _dispatch(self, conn: Connection):
        self._thread_pool.execute(self._connection_handler, conn)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._thread_pool.shutdown(wait=True, timeout=self.SHUTDOWN_TIMEOUT)
        logger.info(f"Server stopped ({self._thread_pool.stats['tasks']['completed']} connections served)")
