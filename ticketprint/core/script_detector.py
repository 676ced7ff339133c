from __future__ import annotations

import re

from .models import TextDirection


_ARABIC_BLOCK = re.compile(r"[\u0600-\u06FF]")


def is_right_to_left(text: str) -> bool:
    return bool(text) and _ARABIC_BLOCK.search(text) is not None


def detect_direction(text: str) -> TextDirection:
    """Classify text as right-to-left when it holds any Arabic-block character."""
    if is_right_to_left(text):
        return TextDirection.RIGHT_TO_LEFT
    return TextDirection.LEFT_TO_RIGHT
