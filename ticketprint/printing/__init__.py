"""Printer transport, command encoding, print sessions and the PDF fallback."""

from .command_encoder import CommandEncoder, encode
from .transport import ConnectionHandle, DeviceTransport, SocketTransport
from .session import PrintSession, validate_request
from .document_renderer import (
    DocumentRenderer,
    PillowDocumentRenderer,
    RenderableDocument,
    generate_document,
)

__all__ = [
    "CommandEncoder",
    "encode",
    "ConnectionHandle",
    "DeviceTransport",
    "SocketTransport",
    "PrintSession",
    "validate_request",
    "DocumentRenderer",
    "PillowDocumentRenderer",
    "RenderableDocument",
    "generate_document",
]
