"""Byte-stream transport to a network receipt printer (raw TCP, port 9100)."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable
import logging
import socket

from ..core.errors import (
    ConnectError,
    ConnectRefused,
    ConnectTimeout,
    WriteError,
    WriteTimeout,
)

logger = logging.getLogger(__name__)


DEFAULT_WRITE_TIMEOUT = 3.0


class ConnectionHandle:
    """A live connection owned by one print session. Never reopened once closed."""

    def __init__(self, sock: socket.socket, host: str, port: int) -> None:
        self._sock: Optional[socket.socket] = sock
        self.host = host
        self.port = port

    @property
    def closed(self) -> bool:
        return self._sock is None

    @property
    def sock(self) -> socket.socket:
        if self._sock is None:
            raise WriteError(f"Connection to {self.host}:{self.port} is closed")
        return self._sock

    def release(self) -> Optional[socket.socket]:
        sock, self._sock = self._sock, None
        return sock

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<ConnectionHandle {self.host}:{self.port} {state}>"


@runtime_checkable
class DeviceTransport(Protocol):
    def connect(self, host: str, port: int, timeout: float) -> ConnectionHandle:
        """Open a connection or raise a PrinterConnectionError subclass."""
        ...

    def write(self, handle: ConnectionHandle, data: bytes) -> None:
        """Send one command group or raise a TransmissionError subclass."""
        ...

    def close(self, handle: ConnectionHandle) -> None:
        """Release the connection. Idempotent and never raises."""
        ...


class SocketTransport:
    def __init__(self, write_timeout: float = DEFAULT_WRITE_TIMEOUT) -> None:
        self.write_timeout = write_timeout

    def connect(self, host: str, port: int, timeout: float) -> ConnectionHandle:
        logger.info(f"Connecting to printer at {host}:{port} (timeout {timeout}s)")
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except socket.timeout as exc:
            raise ConnectTimeout(f"Printer at {host}:{port} did not answer within {timeout:g}s") from exc
        except ConnectionRefusedError as exc:
            raise ConnectRefused(f"Printer at {host}:{port} refused the connection") from exc
        except OSError as exc:
            raise ConnectError(f"Failed to connect to printer at {host}:{port}: {exc}") from exc
        sock.settimeout(self.write_timeout)
        return ConnectionHandle(sock, host, port)

    def write(self, handle: ConnectionHandle, data: bytes) -> None:
        sock = handle.sock
        try:
            sock.sendall(data)
        except socket.timeout as exc:
            raise WriteTimeout(
                f"Printer at {handle.host}:{handle.port} stopped accepting data for {self.write_timeout:g}s"
            ) from exc
        except OSError as exc:
            raise WriteError(f"Write to printer at {handle.host}:{handle.port} failed: {exc}") from exc
        logger.debug(f"Sent {len(data)} bytes to {handle.host}:{handle.port}")

    def close(self, handle: ConnectionHandle) -> None:
        sock = handle.release()
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as exc:
            # Peer may already have dropped the connection
            logger.debug(f"Shutdown of {handle.host}:{handle.port} failed: {exc}")
        try:
            sock.close()
        except OSError as exc:
            logger.warning(f"Closing connection to {handle.host}:{handle.port} failed: {exc}")
        logger.info(f"Disconnected from printer at {handle.host}:{handle.port}")
