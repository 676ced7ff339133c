"""Core models, errors and script detection."""

from .errors import (
    PrintError,
    ValidationError,
    BusyError,
    PrinterConnectionError,
    ConnectTimeout,
    ConnectRefused,
    ConnectError,
    TransmissionError,
    WriteTimeout,
    WriteError,
    SessionCancelled,
    RenderError,
)
from .models import (
    DEFAULT_PORT,
    Alignment,
    Cut,
    EmitText,
    Feed,
    PrintCommand,
    PrintRequest,
    SessionEvent,
    SessionState,
    SessionStatus,
    SetStyle,
    TextDirection,
)
from .script_detector import detect_direction

__all__ = [
    "PrintError",
    "ValidationError",
    "BusyError",
    "PrinterConnectionError",
    "ConnectTimeout",
    "ConnectRefused",
    "ConnectError",
    "TransmissionError",
    "WriteTimeout",
    "WriteError",
    "SessionCancelled",
    "RenderError",
    "DEFAULT_PORT",
    "Alignment",
    "Cut",
    "EmitText",
    "Feed",
    "PrintCommand",
    "PrintRequest",
    "SessionEvent",
    "SessionState",
    "SessionStatus",
    "SetStyle",
    "TextDirection",
    "detect_direction",
]
