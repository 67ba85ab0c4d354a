"""Quiz PDF export.

Questions first, then the answer key on its own page. Drawn directly on a
reportlab canvas with a top-down cursor so page breaks happen per question.
"""
from __future__ import annotations

import io
import logging
import os
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

from reportlab.lib.pagesizes import letter as rl_letter
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from smartquiz.errors import RenderFailed
from smartquiz.models import QuizQuestion

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = rl_letter
MARGIN = 50
PAGE_BREAK_Y = 650
OPTION_INDENT = 18
LINE_SPACING = 1.2
BASE_FONTS = ("Helvetica", "Helvetica-Bold")

INSTRUCTIONS = (
    "• Choose the best answer for each question",
    "• Only one answer is correct per question",
    "• Mark your answers clearly",
)


def answer_letter(question: QuizQuestion) -> str:
    """Letter of the option matching the answer exactly, or "?" if none does."""
    try:
        return chr(ord("A") + question.options.index(question.answer))
    except ValueError:
        return "?"


def format_date(value: datetime) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def resolve_fonts(font_path: Optional[str] = None, bold_font_path: Optional[str] = None) -> Tuple[str, str]:
    """
    Body and heading font names.

    The built-in Helvetica pair covers Latin text only. Pointing font_path
    at a TrueType file (and optionally bold_font_path) embeds that font
    instead, so questions in other scripts draw as real glyphs.
    """
    if not font_path:
        return BASE_FONTS
    regular = _register_ttf(font_path)
    bold = _register_ttf(bold_font_path) if bold_font_path else regular
    return regular, bold


def _register_ttf(path: str) -> str:
    name = "Quiz-" + os.path.splitext(os.path.basename(path))[0]
    if name not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(TTFont(name, path))
    return name


class _PageWriter:
    """Tracks the write position from the top of the page, like a text flow."""

    def __init__(self, canv: canvas.Canvas):
        self.canv = canv
        self.y = MARGIN
        self.font = BASE_FONTS[0]
        self.size = 12

    @property
    def leading(self) -> float:
        return self.size * LINE_SPACING

    def set_font(self, font: str, size: float) -> None:
        self.font = font
        self.size = size
        self.canv.setFont(font, size)

    def new_page(self) -> None:
        self.canv.showPage()
        self.y = MARGIN
        self.canv.setFont(self.font, self.size)

    def move_down(self, lines: float = 1.0) -> None:
        self.y += lines * self.leading

    def text(self, s: str, align: str = "left", indent: float = 0) -> None:
        width = PAGE_WIDTH - 2 * MARGIN - indent
        for line in simpleSplit(s, self.font, self.size, width) or [""]:
            if self.y + self.leading > PAGE_HEIGHT - MARGIN:
                self.new_page()
            baseline = PAGE_HEIGHT - self.y - self.size
            if align == "center":
                self.canv.drawCentredString(PAGE_WIDTH / 2, baseline, line)
            else:
                self.canv.drawString(MARGIN + indent, baseline, line)
            self.y += self.leading


def render_quiz_pdf(title: str, source_file: str, questions: Sequence[QuizQuestion],
                    created_at: Optional[datetime] = None, font_path: Optional[str] = None,
                    bold_font_path: Optional[str] = None) -> bytes:
    """
    Render a printable quiz and return the PDF bytes.

    Identical input gives identical output. Raises RenderFailed if
    reportlab fails or a configured font file cannot be loaded.
    """
    created_at = created_at or datetime.now(timezone.utc)
    buf = io.BytesIO()
    try:
        regular, bold = resolve_fonts(font_path, bold_font_path)
        canv = canvas.Canvas(buf, pagesize=rl_letter, invariant=1)
        canv.setTitle(f"Quiz: {title}")
        canv.setCreator("SmartQuiz")
        page = _PageWriter(canv)

        # Header
        page.set_font(bold, 24)
        page.text(f"Quiz: {title}", align="center")
        page.move_down(0.5)

        page.set_font(regular, 12)
        page.text(f"Source: {source_file}", align="center")
        page.text(f"Generated: {format_date(created_at)}", align="center")
        page.move_down(1)

        # Instructions
        page.set_font(bold, 14)
        page.text("Instructions:")
        page.set_font(regular, 12)
        for line in INSTRUCTIONS:
            page.text(line)
        page.move_down(1)

        # Questions
        for index, question in enumerate(questions, start=1):
            if page.y > PAGE_BREAK_Y:
                page.new_page()

            page.set_font(bold, 14)
            page.text(f"{index}. {question.question}")
            page.move_down(0.5)

            page.set_font(regular, 12)
            for option_index, option in enumerate(question.options):
                letter = chr(ord("A") + option_index)
                page.text(f"{letter}. {option}", indent=OPTION_INDENT)
            page.move_down(1)

        # Answer key
        page.new_page()
        page.set_font(bold, 18)
        page.text("Answer Key", align="center")
        page.move_down(1)

        page.set_font(regular, 12)
        for index, question in enumerate(questions, start=1):
            page.text(f"{index}. {answer_letter(question)} - {question.answer}")

        canv.save()
    except Exception as e:
        logger.exception("PDF export failed")
        raise RenderFailed(f"Failed to generate PDF: {type(e).__name__}: {e}")
    return buf.getvalue()
