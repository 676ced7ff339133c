from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union
import time

from .errors import PrintError


DEFAULT_PORT = 9100


class TextDirection(Enum):
    LEFT_TO_RIGHT = "ltr"
    RIGHT_TO_LEFT = "rtl"


class Alignment(Enum):
    # Values are the alignment names python-escpos accepts in set(align=...)
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass(frozen=True)
class PrintRequest:
    host: str
    text: str
    port: int = DEFAULT_PORT


@dataclass(frozen=True)
class SetStyle:
    align: Alignment = Alignment.LEFT
    width: int = 1
    height: int = 1


@dataclass(frozen=True)
class EmitText:
    text: str


@dataclass(frozen=True)
class Feed:
    lines: int


@dataclass(frozen=True)
class Cut:
    pass


PrintCommand = Union[SetStyle, EmitText, Feed, Cut]


class SessionStatus(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    SENDING = "sending"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({SessionStatus.COMPLETED, SessionStatus.FAILED})
ACTIVE_STATUSES = frozenset({SessionStatus.CONNECTING, SessionStatus.CONNECTED, SessionStatus.SENDING})


@dataclass(frozen=True)
class SessionState:
    status: SessionStatus
    error: Optional[PrintError] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @staticmethod
    def idle() -> "SessionState":
        return SessionState(SessionStatus.IDLE)

    @staticmethod
    def failed(error: PrintError) -> "SessionState":
        return SessionState(SessionStatus.FAILED, error)


@dataclass(frozen=True)
class SessionEvent:
    """One human-readable progress notification emitted by a print session."""

    state: SessionState
    message: str
    ts: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {
            "status": self.state.status.value,
            "message": self.message,
            "error": type(self.state.error).__name__ if self.state.error else None,
            "ts": self.ts,
        }
