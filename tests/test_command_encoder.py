import pytest

from ticketprint.core.models import Alignment, Cut, EmitText, Feed, SetStyle, TextDirection
from ticketprint.core.script_detector import detect_direction
from ticketprint.printing.command_encoder import CommandEncoder, encode


def test_hello_builds_left_aligned_ticket():
    commands = encode("Hello", detect_direction("Hello"))
    assert commands == [
        SetStyle(align=Alignment.LEFT, width=1, height=1),
        EmitText("Hello"),
        Feed(4),
        Cut(),
    ]


def test_arabic_text_is_right_aligned():
    text = "مرحبا"
    commands = encode(text, detect_direction(text))
    assert commands[0] == SetStyle(align=Alignment.RIGHT, width=1, height=1)
    assert commands[1] == EmitText(text)


@pytest.mark.parametrize("text", ["x", "two\nlines", "مرحبا بالعالم", " "])
@pytest.mark.parametrize("direction", list(TextDirection))
def test_sequence_starts_with_one_style_and_ends_with_cut(text, direction):
    commands = encode(text, direction)
    assert isinstance(commands[0], SetStyle)
    assert isinstance(commands[-1], Cut)
    assert sum(isinstance(c, SetStyle) for c in commands) == 1
    # feed and cut come after every text command
    last_text = max(i for i, c in enumerate(commands) if isinstance(c, EmitText))
    assert last_text < commands.index(Feed(4)) < len(commands) - 1


def test_escpos_bytes_for_style():
    enc = CommandEncoder()
    assert b"\x1ba\x00" in enc.to_bytes(SetStyle(align=Alignment.LEFT))
    assert b"\x1ba\x02" in enc.to_bytes(SetStyle(align=Alignment.RIGHT))


def test_escpos_bytes_for_text_feed_and_cut():
    enc = CommandEncoder()
    assert b"Hello" in enc.to_bytes(EmitText("Hello"))
    assert enc.to_bytes(Feed(4)) == b"\x1bd\x04"
    assert enc.to_bytes(Cut()).startswith(b"\x1dV")


def test_commands_are_rendered_independently():
    enc = CommandEncoder()
    first = enc.to_bytes(Feed(4))
    second = enc.to_bytes(Feed(4))
    assert first == second


def test_unknown_command_is_rejected():
    with pytest.raises(TypeError):
        CommandEncoder().to_bytes("not a command")
