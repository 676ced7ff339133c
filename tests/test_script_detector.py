import pytest

from ticketprint.core.models import TextDirection
from ticketprint.core.script_detector import detect_direction


@pytest.mark.parametrize("text", ["مرحبا", "Order #12 - شكرا", "\u0600", "\u06ff", "abc\nسلام"])
def test_arabic_block_is_right_to_left(text):
    assert detect_direction(text) is TextDirection.RIGHT_TO_LEFT


@pytest.mark.parametrize("text", ["", "Hello", "Привет", "שלום", "12:30 Table 4", "\u0750"])
def test_text_without_arabic_block_is_left_to_right(text):
    # Hebrew and Arabic Supplement (U+0750) fall outside U+0600-U+06FF
    assert detect_direction(text) is TextDirection.LEFT_TO_RIGHT


def test_detection_is_deterministic():
    text = "Total: 15 د.إ"
    assert detect_direction(text) is detect_direction(text)
