from __future__ import annotations

from typing import List, Optional
import logging

from escpos.printer import Dummy

from ..core.models import (
    Alignment,
    Cut,
    EmitText,
    Feed,
    PrintCommand,
    SetStyle,
    TextDirection,
)

logger = logging.getLogger(__name__)


FEED_LINES = 4


def encode(text: str, direction: TextDirection) -> List[PrintCommand]:
    """Build the ticket command sequence: style, text, feed, cut."""
    align = Alignment.RIGHT if direction is TextDirection.RIGHT_TO_LEFT else Alignment.LEFT
    return [
        SetStyle(align=align, width=1, height=1),
        EmitText(text),
        Feed(FEED_LINES),
        Cut(),
    ]


class CommandEncoder:
    """Turns print commands into ESC/POS bytes using python-escpos.

    Each command is rendered on its own ``Dummy`` printer so the bytes of one
    command never leak into the next. ``profile`` is a python-escpos
    capability profile name; None uses the library default.
    """

    def __init__(self, profile: Optional[str] = None) -> None:
        self.profile = profile

    def encode(self, text: str, direction: TextDirection) -> List[PrintCommand]:
        return encode(text, direction)

    def _new_buffer(self) -> Dummy:
        if self.profile:
            return Dummy(profile=self.profile)
        return Dummy()

    def to_bytes(self, command: PrintCommand) -> bytes:
        buf = self._new_buffer()
        if isinstance(command, SetStyle):
            if command.width == 1 and command.height == 1:
                buf.set(align=command.align.value, normal_textsize=True)
            else:
                buf.set(
                    align=command.align.value,
                    custom_size=True,
                    width=command.width,
                    height=command.height,
                )
        elif isinstance(command, EmitText):
            text = command.text
            if not text.endswith("\n"):
                text += "\n"
            buf.text(text)
        elif isinstance(command, Feed):
            buf.print_and_feed(command.lines)
        elif isinstance(command, Cut):
            # Feeding is already its own command in the sequence
            buf.cut(feed=False)
        else:
            raise TypeError(f"Unknown print command: {command!r}")
        data = buf.output
        logger.debug(f"Encoded {type(command).__name__} into {len(data)} bytes")
        return data
