"""
Unit tests for Connection and ConnectionHandler, over a socket pair.
"""

import logging
import socket
import threading
import time
from typing import Tuple

import pytest

from minihttpd.core.connection import Connection, ConnectionState, RequestTooLargeError
from minihttpd.http.response import text
from minihttpd.server import ConnectionHandler


@pytest.fixture
def socket_pair():
    server_side, client_side = socket.socketpair()
    client_side.settimeout(5.0)
    yield server_side, client_side
    server_side.close()
    client_side.close()


def make_connection(sock: socket.socket, **kwargs) -> Connection:
    kwargs.setdefault("timeout", 2.0)
    return Connection(socket=sock, address=("127.0.0.1", 50000), **kwargs)


def read_all(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


class TestConnection:
    """Tests for Connection class."""

    def test_reads_headers_only_request(self, socket_pair: Tuple):
        server_side, client_side = socket_pair
        client_side.sendall(b"GET / HTTP/1.1\r\nHost: x\r\n\r\n")

        conn = make_connection(server_side)

        assert conn.read_request() == b"GET / HTTP/1.1\r\nHost: x\r\n\r\n"
        assert conn.state == ConnectionState.PROCESSING

    def test_waits_for_declared_body(self, socket_pair: Tuple):
        server_side, client_side = socket_pair
        conn = make_connection(server_side, buffer_size=8)

        def send_in_pieces():
            client_side.sendall(b"POST /files/a HTTP/1.1\r\nContent-Length: 10\r\n\r\n")
            client_side.sendall(b"01234")
            client_side.sendall(b"56789")

        threading.Thread(target=send_in_pieces, daemon=True).start()

        assert conn.read_request().endswith(b"\r\n\r\n0123456789")

    def test_lenient_header_terminator(self, socket_pair: Tuple):
        server_side, client_side = socket_pair
        client_side.sendall(b"GET / HTTP/1.1\nHost: x\n\n")

        assert make_connection(server_side).read_request() == b"GET / HTTP/1.1\nHost: x\n\n"

    def test_peer_close_returns_partial(self, socket_pair: Tuple):
        server_side, client_side = socket_pair
        client_side.sendall(b"GET / HTTP/1.1\r\n")
        client_side.shutdown(socket.SHUT_WR)

        assert make_connection(server_side).read_request() == b"GET / HTTP/1.1\r\n"

    def test_peer_close_without_data(self, socket_pair: Tuple):
        server_side, client_side = socket_pair
        client_side.shutdown(socket.SHUT_WR)

        assert make_connection(server_side).read_request() is None

    def test_timeout(self, socket_pair: Tuple):
        server_side, client_side = socket_pair
        client_side.sendall(b"GET / HTTP/1.1\r\n")

        with pytest.raises(TimeoutError):
            make_connection(server_side, timeout=0.2).read_request()

    def test_too_large(self, socket_pair: Tuple):
        server_side, client_side = socket_pair
        client_side.sendall(b"GET /" + b"a" * 200 + b" HTTP/1.1\r\n\r\n")

        conn = make_connection(server_side, buffer_size=64, max_request_size=128)
        with pytest.raises(RequestTooLargeError):
            conn.read_request()

    def test_send_and_close(self, socket_pair: Tuple):
        server_side, client_side = socket_pair

        with make_connection(server_side) as conn:
            assert conn.send_response(b"HTTP/1.1 200 OK\r\n\r\n")

        assert conn.state == ConnectionState.CLOSED
        assert read_all(client_side) == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_close_twice(self, socket_pair: Tuple):
        conn = make_connection(socket_pair[0])
        conn.close()
        conn.close()
        assert conn.state == ConnectionState.CLOSED

    def test_client_address(self, socket_pair: Tuple):
        conn = make_connection(socket_pair[0])
        assert (conn.client_ip, conn.client_port) == ("127.0.0.1", 50000)

    @pytest.mark.parametrize("drain_timeout, drain_limit", [
        (0.2, 1024 * 1024 * 1024),
        (60.0, 4096),
    ])
    def test_close_bounded_against_chatty_client(self, socket_pair: Tuple, drain_timeout, drain_limit):
        """A client that never stops sending cannot keep close() draining."""
        server_side, client_side = socket_pair
        conn = make_connection(server_side)
        conn.DRAIN_TIMEOUT = drain_timeout
        conn.DRAIN_LIMIT = drain_limit
        stop = threading.Event()

        def flood():
            while not stop.is_set():
                try:
                    client_side.sendall(b"x" * 1024)
                except OSError:
                    return

        sender = threading.Thread(target=flood, daemon=True)
        sender.start()

        started = time.monotonic()
        conn.close()
        elapsed = time.monotonic() - started
        stop.set()
        sender.join(timeout=5.0)

        assert conn.state == ConnectionState.CLOSED
        assert elapsed < 5.0


class TestConnectionHandler:
    """Tests for ConnectionHandler: one request, one response, then close."""

    def serve(self, socket_pair: Tuple, data: bytes, handler=None, **kwargs) -> bytes:
        server_side, client_side = socket_pair
        client_side.sendall(data)
        client_side.shutdown(socket.SHUT_WR)

        connection_handler = ConnectionHandler(handler or (lambda request: text(request.path)), **kwargs)
        connection_handler(make_connection(server_side))

        return read_all(client_side)

    def test_serves_one_response(self, socket_pair: Tuple):
        raw = self.serve(socket_pair, b"GET /abc HTTP/1.1\r\n\r\n")

        assert raw == b"HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\nContent-Length: 4\r\n\r\n/abc"

    def test_parse_error_drops_connection(self, socket_pair: Tuple, caplog):
        with caplog.at_level(logging.WARNING, logger="minihttpd.server"):
            raw = self.serve(socket_pair, b"BROKEN\r\n\r\n")

        assert raw == b""
        assert "Failed to parse request" in caplog.text
        assert "127.0.0.1:50000" in caplog.text

    def test_parse_error_with_reply_bad_request(self, socket_pair: Tuple):
        raw = self.serve(socket_pair, b"BROKEN\r\n\r\n", reply_bad_request=True)
        assert raw == b"HTTP/1.1 400 Bad Request\r\nContent-Length: 0\r\n\r\n"

    def test_invalid_utf8_is_read_failure(self, socket_pair: Tuple, caplog):
        with caplog.at_level(logging.WARNING, logger="minihttpd.server"):
            raw = self.serve(socket_pair, b"GET /\xff HTTP/1.1\r\n\r\n", reply_bad_request=True)

        assert raw == b""
        assert "invalid UTF-8" in caplog.text

    def test_handler_exception_is_500(self, socket_pair: Tuple):
        def broken(request):
            raise RuntimeError("boom")

        raw = self.serve(socket_pair, b"GET / HTTP/1.1\r\n\r\n", handler=broken)

        assert raw.startswith(b"HTTP/1.1 500 Internal Server Error\r\n")

    def test_empty_connection(self, socket_pair: Tuple):
        calls = []
        raw = self.serve(socket_pair, b"", handler=lambda request: calls.append(request))

        assert raw == b""
        assert calls == []
