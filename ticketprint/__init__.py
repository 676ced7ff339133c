"""ticketprint - print text tickets on a network ESC/POS receipt printer."""

__version__ = "1.0.0"

from .core.models import PrintRequest, SessionState, SessionStatus, TextDirection
from .core.script_detector import detect_direction
from .printing.session import PrintSession
from .printing.transport import SocketTransport

__all__ = [
    "PrintRequest",
    "SessionState",
    "SessionStatus",
    "TextDirection",
    "detect_direction",
    "PrintSession",
    "SocketTransport",
]
