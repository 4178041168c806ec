"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Connection wraps one accepted client socket for its whole (short) life:
exactly one request is read, at most one response is written, then the
socket is closed.

=============================================================================
READING A REQUEST
=============================================================================

TCP delivers a byte stream, not messages. A request may arrive in several
recv() chunks, so reading loops until the request is complete:

    ┌─────────────────────────────────────────────────────────────────┐
    │ 1. recv(buffer_size) until the blank line ending the headers    │
    │    ("\\r\\n\\r\\n", or "\\n\\n" from lenient clients) is buffered   │
    │ 2. if the headers declare Content-Length: N, keep reading       │
    │    until N body bytes have arrived                              │
    │ 3. the peer closing the connection ends the read early; what    │
    │    was received so far is returned                              │
    └─────────────────────────────────────────────────────────────────┘

More than `max_request_size` bytes raises RequestTooLargeError. A silent
client runs into the socket timeout, which surfaces as TimeoutError.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED
              │                                       ▲
              └───────── error / timeout ─────────────┘

=============================================================================
"""

import logging
import re
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


logger = logging.getLogger(__name__)

_HEADER_END = re.compile(rb"\r?\n\r?\n")
_CONTENT_LENGTH = re.compile(rb"^content-length[ \t]*:[ \t]*(\d+)[ \t]*\r?$", re.IGNORECASE | re.MULTILINE)


class RequestTooLargeError(ValueError):
    """The client sent more than max_request_size bytes."""


class ConnectionState(Enum):
    """Connection lifecycle states, for logging and cleanup."""

    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    An accepted client socket.

    Usage:
        with Connection(client_socket, address, timeout=30.0) as conn:
            data = conn.read_request()
            if data is not None:
                conn.send_response(b"HTTP/1.1 200 OK\\r\\n...")

    Attributes:
        socket: The client socket.
        address: Client's (host, port) tuple.
        id: Short identifier used in log lines.
        state: Current lifecycle state.
        buffer_size: Bytes requested per recv() call.
        timeout: Read deadline in seconds (None blocks forever).
        max_request_size: Upper bound on bytes read for one request.
    """

    socket: socket.socket
    address: Tuple[str, int]
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.monotonic)

    buffer_size: int = 4096
    timeout: Optional[float] = 30.0
    max_request_size: int = 1024 * 1024

    # Bounds on what close() reads from a client that keeps sending.
    DRAIN_TIMEOUT = 0.5
    DRAIN_LIMIT = 64 * 1024

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.monotonic() - self.created_at

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete HTTP request from the socket.

        Returns:
            The raw request bytes, or None if the client closed the
            connection without sending anything.

        Raises:
            TimeoutError: The client stopped sending before the request
                          was complete.
            RequestTooLargeError: More than max_request_size bytes.
        """
        self.state = ConnectionState.READING
        buffer = b""

        try:
            header_end = _HEADER_END.search(buffer)
            while header_end is None:
                chunk = self._recv()
                if not chunk:
                    return buffer or None
                buffer = self._append(buffer, chunk)
                header_end = _HEADER_END.search(buffer)

            body_start = header_end.end()
            expected = body_start + self._content_length(buffer[:header_end.start()])
            while len(buffer) < expected:
                chunk = self._recv()
                if not chunk:
                    logger.debug(
                        f"[{self.id}] Peer closed after {len(buffer) - body_start} "
                        f"of {expected - body_start} body bytes"
                    )
                    break
                buffer = self._append(buffer, chunk)
        except socket.timeout:
            raise TimeoutError(f"Request read timed out after {self.timeout}s") from None

        self.state = ConnectionState.PROCESSING
        return buffer

    def _append(self, buffer: bytes, chunk: bytes) -> bytes:
        buffer += chunk
        if len(buffer) > self.max_request_size:
            raise RequestTooLargeError(
                f"Request too large: more than {self.max_request_size} bytes"
            )
        return buffer

    def _recv(self) -> bytes:
        """recv() that treats a reset connection like a closed one."""
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    @staticmethod
    def _content_length(header_section: bytes) -> int:
        """
        Declared body size from the raw header bytes, 0 if absent.

        Scanned before the request is parsed so the reader knows how much
        body to wait for.
        """
        match = _CONTENT_LENGTH.search(header_section)
        return int(match.group(1)) if match else 0

    def send_response(self, data: bytes) -> bool:
        """
        Write the whole response with sendall().

        Returns:
            True if sent, False if the connection was lost.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def close(self):
        """
        Close the connection.

        Half-closes first (FIN to the client), drains what the client still
        sends for at most DRAIN_TIMEOUT seconds or DRAIN_LIMIT bytes, then
        releases the socket.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        deadline = time.monotonic() + self.DRAIN_TIMEOUT
        drained = 0
        try:
            while drained < self.DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(1024)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
