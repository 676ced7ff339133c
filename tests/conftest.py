from __future__ import annotations

from typing import List, Optional
import socket

import pytest

from ticketprint.core.errors import PrintError
from ticketprint.core.models import PrintCommand
from ticketprint.printing.command_encoder import CommandEncoder
from ticketprint.printing.transport import ConnectionHandle


class FakeTransport:
    """Records every transport call; can fail connect or the Nth write."""

    def __init__(
        self,
        connect_error: Optional[PrintError] = None,
        fail_on_write: Optional[int] = None,
        write_error: Optional[Exception] = None,
    ) -> None:
        self.connect_error = connect_error
        self.fail_on_write = fail_on_write
        self.write_error = write_error
        self.calls: List[str] = []
        self.connect_args: List[tuple] = []
        self.writes: List[bytes] = []
        self.handles: List[ConnectionHandle] = []
        self.close_count = 0
        self.on_write = None

    def connect(self, host: str, port: int, timeout: float) -> ConnectionHandle:
        self.calls.append("connect")
        self.connect_args.append((host, port, timeout))
        if self.connect_error is not None:
            raise self.connect_error
        left, right = socket.socketpair()
        right.close()
        handle = ConnectionHandle(left, host, port)
        self.handles.append(handle)
        return handle

    def write(self, handle: ConnectionHandle, data: bytes) -> None:
        self.calls.append("write")
        assert not handle.closed
        if self.on_write is not None:
            self.on_write(len(self.writes) + 1)
        if self.fail_on_write is not None and len(self.writes) + 1 == self.fail_on_write:
            raise self.write_error
        self.writes.append(data)

    def close(self, handle: ConnectionHandle) -> None:
        self.calls.append("close")
        self.close_count += 1
        sock = handle.release()
        if sock is not None:
            sock.close()


class TaggingEncoder(CommandEncoder):
    """Encodes each command as its class name so writes are easy to read."""

    def to_bytes(self, command: PrintCommand) -> bytes:
        return type(command).__name__.encode("ascii")


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def encoder() -> TaggingEncoder:
    return TaggingEncoder()
