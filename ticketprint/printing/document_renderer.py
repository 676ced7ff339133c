"""PDF fallback path: lay the ticket text out on pages instead of sending it
to the receipt printer.

The renderer is consumed through ``DocumentRenderer.render(text, direction)``;
``generate_document`` is the entry point front ends call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Tuple, runtime_checkable
import io
import logging
import pathlib

from PIL import Image, ImageDraw, ImageFont

from ..core.errors import PrintError, RenderError, ValidationError
from ..core.models import TextDirection
from ..core.script_detector import detect_direction

logger = logging.getLogger(__name__)


# A4 at 72 dpi
A4_PAGE_SIZE: Tuple[int, int] = (595, 842)
DEFAULT_FONT_SIZE = 40


@dataclass
class RenderableDocument:
    direction: TextDirection
    pages: List[Image.Image] = field(default_factory=list)
    resolution: float = 72.0

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def to_pdf(self) -> bytes:
        if not self.pages:
            raise RenderError("Document has no pages")
        buf = io.BytesIO()
        try:
            first, rest = self.pages[0], self.pages[1:]
            first.save(buf, format="PDF", save_all=True, append_images=rest, resolution=self.resolution)
        except (OSError, ValueError) as exc:
            raise RenderError(f"Error generating PDF: {exc}") from exc
        return buf.getvalue()

    def save(self, path: str) -> pathlib.Path:
        target = pathlib.Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(self.to_pdf())
        except OSError as exc:
            raise RenderError(f"Could not write PDF to {target}: {exc}") from exc
        return target


@runtime_checkable
class DocumentRenderer(Protocol):
    def render(self, text: str, direction: TextDirection) -> RenderableDocument:
        ...


class PillowDocumentRenderer:
    """Draws text onto white pages, one wrapped block per page, vertically centered.

    Right-to-left text is right aligned. Pass ``font_path`` to a TrueType font
    that covers the script being printed (e.g. Noto Naskh Arabic); the
    built-in Pillow font is used otherwise.
    """

    def __init__(
        self,
        font_path: Optional[str] = None,
        font_size: int = DEFAULT_FONT_SIZE,
        page_size: Tuple[int, int] = A4_PAGE_SIZE,
        margin: int = 36,
        line_spacing: int = 8,
    ) -> None:
        self.font_path = font_path
        self.font_size = font_size
        self.page_size = page_size
        self.margin = margin
        self.line_spacing = line_spacing

    def _load_font(self):
        if self.font_path:
            try:
                return ImageFont.truetype(self.font_path, self.font_size)
            except OSError as exc:
                raise RenderError(f"Could not load font {self.font_path}: {exc}") from exc
        return ImageFont.load_default(size=self.font_size)

    def _wrap(self, draw: ImageDraw.ImageDraw, font, text: str, width: int) -> List[str]:
        lines: List[str] = []
        for paragraph in text.splitlines() or [""]:
            words = paragraph.split()
            if not words:
                lines.append("")
                continue
            current = ""
            for word in words:
                candidate = f"{current} {word}" if current else word
                if draw.textlength(candidate, font=font) <= width:
                    current = candidate
                    continue
                if current:
                    lines.append(current)
                current = ""
                # Words wider than the page are broken by character
                for ch in word:
                    if current and draw.textlength(current + ch, font=font) > width:
                        lines.append(current)
                        current = ""
                    current += ch
            lines.append(current)
        return lines

    def _blank_page(self) -> Image.Image:
        return Image.new("RGB", self.page_size, "white")

    def render(self, text: str, direction: TextDirection) -> RenderableDocument:
        font = self._load_font()
        page_w, page_h = self.page_size
        usable_w = page_w - 2 * self.margin
        usable_h = page_h - 2 * self.margin

        measure = ImageDraw.Draw(self._blank_page())
        left, top, right, bottom = measure.textbbox((0, 0), "Ag", font=font)
        line_height = max(1, bottom - top) + self.line_spacing
        per_page = max(1, usable_h // line_height)

        lines = self._wrap(measure, font, text, usable_w)
        doc = RenderableDocument(direction=direction)
        for start in range(0, len(lines), per_page):
            chunk = lines[start:start + per_page]
            page = self._blank_page()
            draw = ImageDraw.Draw(page)
            y = self.margin + (usable_h - len(chunk) * line_height) // 2
            for line in chunk:
                if direction is TextDirection.RIGHT_TO_LEFT:
                    x = page_w - self.margin - draw.textlength(line, font=font)
                else:
                    x = self.margin
                draw.text((x, y), line, fill="black", font=font)
                y += line_height
            doc.pages.append(page)
        logger.info(f"Rendered {len(lines)} lines onto {doc.page_count} page(s) ({direction.value})")
        return doc


def generate_document(text: str, renderer: Optional[DocumentRenderer] = None) -> RenderableDocument:
    """Render ticket text as a paginated document instead of printing it."""
    if not text:
        raise ValidationError("Please enter text to generate PDF")
    renderer = renderer or PillowDocumentRenderer()
    direction = detect_direction(text)
    try:
        return renderer.render(text, direction)
    except PrintError:
        raise
    except Exception as exc:  # noqa: BLE001 - any renderer failure is reported as RenderError
        logger.exception("Document rendering failed")
        raise RenderError(f"Error generating PDF: {exc}") from exc
