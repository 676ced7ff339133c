"""Error taxonomy for print sessions and the document fallback path.

Every error carries a short human-readable message. The class-level
``default_message`` is used when none is given, so each error kind reads
differently when shown to a user.
"""

from __future__ import annotations

from typing import Optional


class PrintError(Exception):
    default_message = "Printing failed"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PrintError):
    default_message = "Please enter IP and text"


class BusyError(PrintError):
    default_message = "A print job is already in progress"


class PrinterConnectionError(PrintError):
    """No connection to the printer was established; nothing was sent."""

    default_message = "Failed to connect to printer"


class ConnectTimeout(PrinterConnectionError):
    default_message = "Printer did not answer before the connect timeout"


class ConnectRefused(PrinterConnectionError):
    default_message = "Printer refused the connection"


class ConnectError(PrinterConnectionError):
    default_message = "Could not reach the printer"


class TransmissionError(PrintError):
    """Sending failed mid-ticket; the printer may hold a partial ticket."""

    default_message = "Printing was interrupted"


class WriteTimeout(TransmissionError):
    default_message = "Printer stopped accepting data"


class WriteError(TransmissionError):
    default_message = "Lost connection to the printer while printing"


class SessionCancelled(PrintError):
    default_message = "Print job was cancelled"


class RenderError(PrintError):
    default_message = "Error generating PDF"
