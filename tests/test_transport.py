from __future__ import annotations

import socket
import sys
import threading
import time

import pytest

from ticketprint.core.errors import (
    ConnectError,
    ConnectRefused,
    ConnectTimeout,
    WriteError,
    WriteTimeout,
)
from ticketprint.printing import transport as transport_module
from ticketprint.printing.transport import ConnectionHandle, SocketTransport


class RecordingSocket:
    def __init__(self, send_error=None):
        self.send_error = send_error
        self.sent = []
        self.shutdowns = 0
        self.closes = 0
        self.timeout = None

    def settimeout(self, value):
        self.timeout = value

    def sendall(self, data):
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(data)

    def shutdown(self, how):
        self.shutdowns += 1

    def close(self):
        self.closes += 1


@pytest.fixture
def printer_server():
    """A one-shot TCP listener standing in for a printer on port 9100."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    received = bytearray()

    def _serve():
        conn, _ = server.accept()
        with conn:
            while True:
                chunk = conn.recv(4096)
                if not chunk:
                    break
                received.extend(chunk)

    thread = threading.Thread(target=_serve, daemon=True)
    thread.start()
    yield server.getsockname()[1], received, thread
    server.close()


def test_sends_bytes_to_a_listening_printer(printer_server):
    port, received, thread = printer_server
    transport = SocketTransport(write_timeout=2.0)
    handle = transport.connect("127.0.0.1", port, timeout=5.0)
    assert not handle.closed
    transport.write(handle, b"\x1ba\x00")
    transport.write(handle, b"Hello\n")
    transport.close(handle)
    thread.join(timeout=5)
    assert bytes(received) == b"\x1ba\x00Hello\n"
    assert handle.closed


def test_refused_connection():
    placeholder = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    placeholder.bind(("127.0.0.1", 0))
    port = placeholder.getsockname()[1]
    placeholder.close()
    with pytest.raises(ConnectRefused):
        SocketTransport().connect("127.0.0.1", port, timeout=5.0)


def test_connect_timeout_creates_no_handle(monkeypatch):
    seen = {}

    def _never_connects(address, timeout=None):
        seen["timeout"] = timeout
        raise socket.timeout("timed out")

    monkeypatch.setattr(transport_module.socket, "create_connection", _never_connects)
    with pytest.raises(ConnectTimeout):
        SocketTransport().connect("192.168.1.100", 9100, timeout=5.0)
    assert seen["timeout"] == 5.0


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="relies on Linux dropping SYNs for a full accept queue")
def test_connect_to_saturated_listener_is_bounded():
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(0)
    port = server.getsockname()[1]
    fillers = []
    try:
        # Never accepted, so the queue stays full and later handshakes stall
        for _ in range(4):
            filler = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            filler.setblocking(False)
            filler.connect_ex(("127.0.0.1", port))
            fillers.append(filler)
        time.sleep(0.2)

        started = time.monotonic()
        with pytest.raises(ConnectTimeout):
            SocketTransport().connect("127.0.0.1", port, timeout=0.5)
        elapsed = time.monotonic() - started
        assert 0.4 <= elapsed < 3.0
    finally:
        for filler in fillers:
            filler.close()
        server.close()


def test_other_connect_failures_are_connect_errors(monkeypatch):
    def _unreachable(address, timeout=None):
        raise OSError(113, "No route to host")

    monkeypatch.setattr(transport_module.socket, "create_connection", _unreachable)
    with pytest.raises(ConnectError) as excinfo:
        SocketTransport().connect("192.168.1.100", 9100, timeout=5.0)
    assert not isinstance(excinfo.value, (ConnectTimeout, ConnectRefused))


def test_connected_socket_uses_write_timeout(monkeypatch):
    sock = RecordingSocket()
    monkeypatch.setattr(transport_module.socket, "create_connection", lambda address, timeout=None: sock)
    handle = SocketTransport(write_timeout=1.5).connect("192.168.1.100", 9100, timeout=5.0)
    assert sock.timeout == 1.5
    assert (handle.host, handle.port) == ("192.168.1.100", 9100)


def test_stalled_write_is_a_write_timeout():
    handle = ConnectionHandle(RecordingSocket(send_error=socket.timeout("timed out")), "printer", 9100)
    with pytest.raises(WriteTimeout):
        SocketTransport().write(handle, b"Hello")


def test_broken_pipe_is_a_write_error():
    handle = ConnectionHandle(RecordingSocket(send_error=BrokenPipeError(32, "Broken pipe")), "printer", 9100)
    with pytest.raises(WriteError) as excinfo:
        SocketTransport().write(handle, b"Hello")
    assert not isinstance(excinfo.value, WriteTimeout)


def test_close_twice_has_no_second_effect():
    sock = RecordingSocket()
    handle = ConnectionHandle(sock, "printer", 9100)
    transport = SocketTransport()
    transport.close(handle)
    transport.close(handle)
    assert sock.shutdowns == 1
    assert sock.closes == 1
    assert handle.closed


def test_close_survives_shutdown_failure():
    sock = RecordingSocket()

    def _fail(how):
        raise OSError(107, "Transport endpoint is not connected")

    sock.shutdown = _fail
    handle = ConnectionHandle(sock, "printer", 9100)
    SocketTransport().close(handle)
    assert sock.closes == 1


def test_closed_handle_refuses_writes():
    handle = ConnectionHandle(RecordingSocket(), "printer", 9100)
    transport = SocketTransport()
    transport.close(handle)
    with pytest.raises(WriteError):
        transport.write(handle, b"Hello")
