"""
PDF export (one-way).

The generator draws through a DocumentWriter, an abstract page cursor
with fonts, colors, text and lines. ReportLabDocumentWriter is the
implementation used for real output; tests inject a recording writer.
"""

import asyncio
import io
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, letter
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas as rl_canvas

from .base import AsyncCodec
from ..data.models import Checklist, ChecklistFormat, ChecklistItem, ChecklistItemType, ParsedChecklistFile
from ..data.errors import UnsupportedFormatError
from ..config.constants import (
    PDF_BOTTOM_SAFETY, PDF_CREATOR, PDF_DEFAULT_MARGIN, PDF_HEADER_SAFETY, PDF_INDENT_WIDTH,
)
from ..config.settings import settings

logger = logging.getLogger("efis_checklists.formats.pdf")

PAGE_SIZES = {
    "letter": letter,
    "a4": A4,
}

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_ITALIC = "Helvetica-Oblique"

BLACK = "#000000"
GREY = "#666666"
LIGHT_GREY = "#999999"
RULE_GREY = "#cccccc"
NOTE_GREY = "#555555"
WARNING_RED = "#cc0000"
CAUTION_ORANGE = "#cc6600"

LINE_SPACING = 1.25
ITEM_GAP = 2.0
LEADER_GAP = 4.0
MIN_LEADER_WIDTH = 12.0
MAX_RESPONSE_SHARE = 0.5

# Item type -> (font, size, color, text prefix)
ITEM_STYLES = {
    ChecklistItemType.TITLE: (FONT_BOLD, 10, BLACK, ""),
    ChecklistItemType.CHALLENGE_RESPONSE: (FONT_REGULAR, 9, BLACK, ""),
    ChecklistItemType.CHALLENGE_ONLY: (FONT_REGULAR, 9, BLACK, ""),
    ChecklistItemType.NOTE: (FONT_ITALIC, 8, NOTE_GREY, ""),
    ChecklistItemType.WARNING: (FONT_BOLD, 9, WARNING_RED, "WARNING: "),
    ChecklistItemType.CAUTION: (FONT_BOLD, 9, CAUTION_ORANGE, "CAUTION: "),
}


class DocumentWriter(ABC):
    """
    Page cursor used by the PDF generator.

    Coordinates run top-down: y is the distance from the top edge of the
    page to the top of the next line, x the distance from the left edge.
    """

    @property
    @abstractmethod
    def y(self) -> float:
        """Current vertical cursor position"""

    @property
    @abstractmethod
    def page_width(self) -> float:
        pass

    @property
    @abstractmethod
    def page_height(self) -> float:
        pass

    @property
    @abstractmethod
    def margin(self) -> float:
        pass

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    @abstractmethod
    def set_font(self, name: str, size: float) -> None:
        pass

    @abstractmethod
    def set_color(self, color: str) -> None:
        """Set the fill color as a "#rrggbb" string"""

    @abstractmethod
    def text_width(self, text: str, font: Optional[str] = None, size: Optional[float] = None) -> float:
        """Rendered width of text, in the current font unless given"""

    @abstractmethod
    def draw_text(self, text: str, x: float, width: Optional[float] = None, align: str = "left") -> None:
        """
        Draw one line of text at the cursor without moving it.
        With a width, align may be "left", "right" or "center" within [x, x + width].
        """

    @abstractmethod
    def draw_line(self, x1: float, x2: float, color: str = RULE_GREY, line_width: float = 0.5) -> None:
        """Draw a horizontal rule at the cursor"""

    @abstractmethod
    def move_down(self, amount: float) -> None:
        pass

    @abstractmethod
    def new_page(self) -> None:
        """Start a new page and put the cursor at the top margin"""

    @abstractmethod
    def finish(self) -> bytes:
        """Close the document and return its bytes"""


class ReportLabDocumentWriter(DocumentWriter):
    """DocumentWriter drawing onto a ReportLab canvas"""

    def __init__(self, title: str = "", page_size: str = "letter", margin: float = PDF_DEFAULT_MARGIN):
        try:
            self._page_width, self._page_height = PAGE_SIZES[page_size.lower()]
        except KeyError:
            raise ValueError(f"Unknown page size {page_size!r}") from None
        self._margin = float(margin)
        self._y = self._margin
        self._font: Tuple[str, float] = (FONT_REGULAR, 10)
        self._color = BLACK

        self._buffer = io.BytesIO()
        self._canvas = rl_canvas.Canvas(self._buffer, pagesize=(self._page_width, self._page_height))
        self._canvas.setTitle(title)
        self._canvas.setCreator(PDF_CREATOR)
        self._apply_state()

    @property
    def y(self) -> float:
        return self._y

    @property
    def page_width(self) -> float:
        return self._page_width

    @property
    def page_height(self) -> float:
        return self._page_height

    @property
    def margin(self) -> float:
        return self._margin

    def _apply_state(self) -> None:
        # A new ReportLab page starts with a fresh graphics state
        self._canvas.setFont(*self._font)
        self._canvas.setFillColor(colors.HexColor(self._color))

    def set_font(self, name: str, size: float) -> None:
        self._font = (name, size)
        self._canvas.setFont(name, size)

    def set_color(self, color: str) -> None:
        self._color = color
        self._canvas.setFillColor(colors.HexColor(color))

    def text_width(self, text: str, font: Optional[str] = None, size: Optional[float] = None) -> float:
        return stringWidth(text, font or self._font[0], size or self._font[1])

    def draw_text(self, text: str, x: float, width: Optional[float] = None, align: str = "left") -> None:
        baseline = self._page_height - (self._y + self._font[1])
        if width is not None and align == "right":
            self._canvas.drawRightString(x + width, baseline, text)
        elif width is not None and align == "center":
            self._canvas.drawCentredString(x + width / 2, baseline, text)
        else:
            self._canvas.drawString(x, baseline, text)

    def draw_line(self, x1: float, x2: float, color: str = RULE_GREY, line_width: float = 0.5) -> None:
        y = self._page_height - self._y
        self._canvas.saveState()
        self._canvas.setStrokeColor(colors.HexColor(color))
        self._canvas.setLineWidth(line_width)
        self._canvas.line(x1, y, x2, y)
        self._canvas.restoreState()

    def move_down(self, amount: float) -> None:
        self._y += amount

    def new_page(self) -> None:
        self._canvas.showPage()
        self._y = self._margin
        self._apply_state()

    def finish(self) -> bytes:
        self._canvas.save()
        return self._buffer.getvalue()


def line_height(size: float) -> float:
    return size * LINE_SPACING


def wrap_text(writer: DocumentWriter, text: str, max_width: float,
              font: Optional[str] = None, size: Optional[float] = None) -> List[str]:
    """
    Word-wrap text to max_width. A single word wider than the limit gets a
    line of its own. Always returns at least one line.
    """
    lines: List[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if not current or writer.text_width(candidate, font, size) <= max_width:
            current = candidate
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


def ensure_space(writer: DocumentWriter, needed: float) -> bool:
    """Start a new page if needed points would run past the safety margin"""
    if writer.y + needed > writer.page_height - PDF_BOTTOM_SAFETY:
        writer.new_page()
        return True
    return False


def _item_layout(writer: DocumentWriter, item: ChecklistItem,
                 available: float) -> Tuple[List[str], List[str], float]:
    """Lines of challenge and response text plus the total row height"""
    font, size, _, prefix = ITEM_STYLES[item.type]
    if item.is_space:
        return [], [], line_height(size)

    text = prefix + item.challenge_text
    if item.type == ChecklistItemType.TITLE:
        text = text.upper()

    response_lines: List[str] = []
    challenge_width = available
    if item.type == ChecklistItemType.CHALLENGE_RESPONSE and item.response_text:
        response_lines = wrap_text(writer, item.response_text, available * MAX_RESPONSE_SHARE, FONT_BOLD, size)
        response_width = max(writer.text_width(line, FONT_BOLD, size) for line in response_lines)
        challenge_width = max(available - response_width - MIN_LEADER_WIDTH, available * (1 - MAX_RESPONSE_SHARE))

    challenge_lines = wrap_text(writer, text, challenge_width, font, size)
    rows = max(len(challenge_lines), len(response_lines))
    return challenge_lines, response_lines, rows * line_height(size)


def _draw_item(writer: DocumentWriter, item: ChecklistItem) -> None:
    font, size, color, _ = ITEM_STYLES[item.type]
    indent = 0 if item.centered else item.indent * PDF_INDENT_WIDTH
    x = writer.margin + indent
    available = writer.content_width - indent

    challenge_lines, response_lines, height = _item_layout(writer, item, available)
    ensure_space(writer, height + ITEM_GAP)
    top = writer.y

    writer.set_font(font, size)
    writer.set_color(color)
    for line in challenge_lines:
        if item.centered:
            writer.draw_text(line, x, width=available, align="center")
        else:
            writer.draw_text(line, x, width=available)
        writer.move_down(line_height(size))

    if response_lines:
        writer.move_down(top - writer.y)

        # Dot leader between the first challenge line and the first response line
        first_challenge_end = x + writer.text_width(challenge_lines[0], font, size) + LEADER_GAP
        first_response_start = (writer.margin + writer.content_width
                                - writer.text_width(response_lines[0], FONT_BOLD, size) - LEADER_GAP)
        leader_width = first_response_start - first_challenge_end
        dot_width = writer.text_width(".", font, size)
        if leader_width > 0 and dot_width > 0:
            writer.set_color(LIGHT_GREY)
            writer.draw_text("." * int(leader_width / dot_width), first_challenge_end)

        writer.set_font(FONT_BOLD, size)
        writer.set_color(BLACK)
        for line in response_lines:
            writer.draw_text(line, x, width=available, align="right")
            writer.move_down(line_height(size))

    # Leave the cursor below the taller column
    writer.move_down(top + height - writer.y + ITEM_GAP)
    writer.set_color(BLACK)


def _draw_checklist(writer: DocumentWriter, checklist: Checklist) -> None:
    ensure_space(writer, PDF_HEADER_SAFETY)
    writer.set_font(FONT_BOLD, 12)
    writer.set_color(BLACK)
    writer.draw_text(checklist.name, writer.margin)
    writer.move_down(line_height(12) + 2)
    writer.draw_line(writer.margin, writer.margin + writer.content_width)
    writer.move_down(4)

    for item in checklist.items:
        _draw_item(writer, item)

    writer.move_down(line_height(10))


def _draw_title_page(writer: DocumentWriter, file: ParsedChecklistFile) -> None:
    writer.move_down(writer.page_height / 4)
    writer.set_font(FONT_BOLD, 18)
    writer.set_color(BLACK)
    writer.draw_text(file.name, writer.margin, width=writer.content_width, align="center")
    writer.move_down(line_height(18) + 6)

    subtitle = " - ".join(part for part in (file.metadata.make_model, file.metadata.aircraft_registration) if part)
    if subtitle:
        writer.set_font(FONT_REGULAR, 10)
        writer.set_color(GREY)
        writer.draw_text(subtitle, writer.margin, width=writer.content_width, align="center")
        writer.move_down(line_height(10) + 12)

    writer.set_font(FONT_REGULAR, 10)
    writer.set_color(BLACK)
    for group in file.groups:
        writer.draw_text(f"{group.name} ({len(group.checklists)})", writer.margin,
                         width=writer.content_width, align="center")
        writer.move_down(line_height(10))

    if file.metadata.copyright:
        writer.move_down(line_height(10))
        writer.set_font(FONT_REGULAR, 8)
        writer.set_color(LIGHT_GREY)
        writer.draw_text(file.metadata.copyright, writer.margin, width=writer.content_width, align="center")
        writer.move_down(line_height(8))


def generate_pdf(file: ParsedChecklistFile, writer: DocumentWriter) -> bytes:
    """Render a checklist file through writer and return the document bytes"""
    _draw_title_page(writer, file)

    for group in file.groups:
        writer.new_page()
        writer.set_font(FONT_BOLD, 14)
        writer.set_color(BLACK)
        writer.draw_text(group.name.upper(), writer.margin)
        writer.move_down(line_height(14) + 4)

        for checklist in group.checklists:
            _draw_checklist(writer, checklist)

    logger.debug(f"Rendered {sum(len(g.checklists) for g in file.groups)} checklists to PDF")
    return writer.finish()


def render_pdf(file: ParsedChecklistFile) -> bytes:
    """Render with ReportLab using the configured page size and margin"""
    writer = ReportLabDocumentWriter(
        title=file.name,
        page_size=settings.get("pdf_page_size", "letter"),
        margin=settings.get("pdf_margin", PDF_DEFAULT_MARGIN),
    )
    return generate_pdf(file, writer)


class PdfCodec(AsyncCodec):
    """Export-only PDF codec"""

    format = ChecklistFormat.PDF

    async def parse(self, content: bytes, file_name: str) -> ParsedChecklistFile:
        raise UnsupportedFormatError("PDF import is not supported")

    async def serialize(self, file: ParsedChecklistFile) -> bytes:
        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(None, render_pdf, file)
        logger.info(f"Generated PDF for '{file.name}' ({len(data)} bytes)")
        return data
