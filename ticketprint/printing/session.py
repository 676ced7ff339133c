from __future__ import annotations

from typing import Callable, List, Optional
import logging
import threading

from ..core.errors import (
    BusyError,
    ConnectError,
    PrintError,
    SessionCancelled,
    TransmissionError,
    ValidationError,
    WriteError,
)
from ..core.models import (
    PrintCommand,
    PrintRequest,
    SessionEvent,
    SessionState,
    SessionStatus,
)
from ..core.script_detector import detect_direction
from .command_encoder import CommandEncoder
from .transport import ConnectionHandle, DeviceTransport

logger = logging.getLogger(__name__)


DEFAULT_CONNECT_TIMEOUT = 5.0

Listener = Callable[[SessionEvent], None]

_MESSAGES = {
    SessionStatus.CONNECTING: "Connecting to printer...",
    SessionStatus.CONNECTED: "Printing...",
    SessionStatus.COMPLETED: "Print completed",
}


def validate_request(request: PrintRequest) -> None:
    if not (request.host or "").strip() or not request.text:
        raise ValidationError()
    if not isinstance(request.port, int) or not (0 < request.port < 65536):
        raise ValidationError(f"Invalid printer port: {request.port!r}")


class PrintSession:
    """Connects to a printer, sends one ticket and disconnects.

    ``run`` walks IDLE -> CONNECTING -> CONNECTED -> SENDING and ends in
    COMPLETED or FAILED. Listeners get a SessionEvent for CONNECTING,
    CONNECTED and the terminal state; SENDING follows CONNECTED without a
    separate notification. Any path that opened a connection closes it
    exactly once before the terminal state is reported.

    Only one run may be active at a time; an overlapping call raises
    BusyError. A finished session can be run again and always opens a new
    connection.
    """

    def __init__(
        self,
        transport: DeviceTransport,
        encoder: Optional[CommandEncoder] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        self.transport = transport
        self.encoder = encoder or CommandEncoder()
        self.connect_timeout = connect_timeout
        self._state = SessionState.idle()
        self._events: List[SessionEvent] = []
        self._listeners: List[Listener] = []
        self._run_lock = threading.Lock()
        self._cancelled = threading.Event()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def events(self) -> List[SessionEvent]:
        return list(self._events)

    @property
    def transitions(self) -> List[SessionStatus]:
        return [event.state.status for event in self._events]

    @property
    def busy(self) -> bool:
        return self._run_lock.locked()

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def cancel(self) -> None:
        """Abandon the running job; the connection is closed once the current write returns."""
        if self.busy:
            logger.info("Print session cancellation requested")
            self._cancelled.set()

    def run(self, request: PrintRequest, listener: Optional[Listener] = None) -> SessionState:
        validate_request(request)
        if not self._run_lock.acquire(blocking=False):
            raise BusyError()
        try:
            self._events = []
            self._state = SessionState.idle()
            return self._run(request, listener)
        finally:
            self._cancelled.clear()
            self._run_lock.release()

    def _run(self, request: PrintRequest, listener: Optional[Listener]) -> SessionState:
        direction = detect_direction(request.text)
        commands = self.encoder.encode(request.text, direction)
        logger.info(
            f"Printing {len(request.text)} characters ({direction.value}) to {request.host}:{request.port}"
        )

        self._enter(SessionState(SessionStatus.CONNECTING), listener)
        try:
            handle = self.transport.connect(request.host, request.port, self.connect_timeout)
        except PrintError as exc:
            logger.error(f"Connection to {request.host}:{request.port} failed: {exc.message}")
            return self._fail(exc, listener)
        except OSError as exc:
            logger.error(f"Connection to {request.host}:{request.port} failed: {exc}")
            return self._fail(ConnectError(f"Failed to connect to printer: {exc}"), listener)

        self._enter(SessionState(SessionStatus.CONNECTED), listener)
        self._state = SessionState(SessionStatus.SENDING)
        try:
            error = self._send(handle, commands)
        except Exception as exc:
            self._close(handle)
            self._fail(PrintError(f"Unexpected error while printing: {exc}"), listener)
            raise
        self._close(handle)

        if error is not None:
            logger.error(f"Print to {request.host}:{request.port} failed: {error.message}")
            return self._fail(error, listener)
        return self._enter(SessionState(SessionStatus.COMPLETED), listener)

    def _send(self, handle: ConnectionHandle, commands: List[PrintCommand]) -> Optional[PrintError]:
        for index, command in enumerate(commands):
            if self._cancelled.is_set():
                return SessionCancelled()
            try:
                self.transport.write(handle, self.encoder.to_bytes(command))
            except TransmissionError as exc:
                return exc
            except OSError as exc:
                return WriteError(f"Write of command {index + 1} failed: {exc}")
        return None

    def _close(self, handle: ConnectionHandle) -> None:
        try:
            self.transport.close(handle)
        except Exception as exc:  # noqa: BLE001 - close must not mask the session outcome
            logger.warning(f"Closing printer connection failed: {exc}")

    def _fail(self, error: PrintError, listener: Optional[Listener]) -> SessionState:
        return self._enter(SessionState.failed(error), listener, message=f"Error: {error.message}")

    def _enter(
        self,
        state: SessionState,
        listener: Optional[Listener],
        message: Optional[str] = None,
    ) -> SessionState:
        self._state = state
        event = SessionEvent(state=state, message=message or _MESSAGES.get(state.status, state.status.value))
        self._events.append(event)
        logger.info(f"Print session: {event.message}")
        targets = list(self._listeners)
        if listener is not None:
            targets.append(listener)
        for target in targets:
            try:
                target(event)
            except Exception:  # noqa: BLE001 - a broken listener must not break the print
                logger.exception("Print session listener failed")
        return state
