"""
Service: export.py
Role:
- Build the downloadable results of an ended game: a plain-text document and
  a PDF (ReportLab), both with the filled-in story and the answer key.

Notes:
- The story text comes from `story_renderer.substitute` through
  `render_story` / `render_story_markup`, the same routine as the on-screen
  view.
- Exports are only available once the game has ended.
"""
from __future__ import annotations

import io
from datetime import datetime
from typing import List, Optional

from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer

from madlibs.models.game import STATUS_ENDED, Game, utcnow
from .errors import ValidationError
from .story_renderer import answer_key, markup_escape, render_story, render_story_markup

EXPORT_TITLE = "Mad Libs Results"

_PDF_COLOR_ACCENT = HexColor("#7c3aed")
_PDF_COLOR_DARK = HexColor("#212121")
_PDF_COLOR_MUTED = HexColor("#646464")
_PDF_COLOR_RULE = HexColor("#e0e0e0")


def export_filename(game: Game, extension: str) -> str:
    return f"madlibs-{game.code}.{extension}"


def _require_results(game: Game) -> None:
    if game.status != STATUS_ENDED or game.selected_answers is None:
        raise ValidationError("No results to download yet", details={"status": game.status})


def export_text(game: Game, generated_at: Optional[datetime] = None) -> str:
    _require_results(game)
    ts = generated_at or utcnow()
    lines: List[str] = [
        EXPORT_TITLE,
        f"Game: {game.title}",
        f"Players: {len(game.players)}",
        f"Generated: {ts.strftime('%Y-%m-%d')}",
        "-" * 40,
        "",
        render_story(game, game.selected_answers),
        "",
        "-" * 40,
        "Answer Key",
    ]
    for entry in answer_key(game, game.selected_answers):
        lines.append(f"{entry['index']}. {entry['type']}: {entry['answer']} - {entry['player_name']}")
    return "\n".join(lines) + "\n"


def _pdf_styles():
    base = getSampleStyleSheet()
    base.add(ParagraphStyle("ResultsTitle", fontName="Helvetica-Bold", fontSize=24,
                            leading=30, alignment=TA_CENTER,
                            textColor=_PDF_COLOR_ACCENT, spaceAfter=10))
    base.add(ParagraphStyle("ResultsMeta", fontName="Helvetica", fontSize=12,
                            leading=16, alignment=TA_CENTER,
                            textColor=_PDF_COLOR_MUTED, spaceAfter=2))
    base.add(ParagraphStyle("StoryBody", fontName="Helvetica", fontSize=12,
                            leading=17, textColor=_PDF_COLOR_DARK, spaceAfter=6))
    base.add(ParagraphStyle("KeyHeading", fontName="Helvetica-Bold", fontSize=16,
                            leading=20, textColor=_PDF_COLOR_ACCENT,
                            spaceBefore=6, spaceAfter=8))
    base.add(ParagraphStyle("KeyEntry", fontName="Helvetica", fontSize=10,
                            leading=14, textColor=_PDF_COLOR_DARK))
    return base


def export_pdf(game: Game, generated_at: Optional[datetime] = None) -> bytes:
    """PDF bytes: header, story (answers in bold), answer key."""
    _require_results(game)
    ts = generated_at or utcnow()
    styles = _pdf_styles()
    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4,
                            leftMargin=20 * mm, rightMargin=20 * mm,
                            topMargin=20 * mm, bottomMargin=20 * mm,
                            title=f"{EXPORT_TITLE} - {game.title}")

    elements: list = [
        Paragraph(EXPORT_TITLE, styles["ResultsTitle"]),
        Paragraph(f"Game: {markup_escape(game.title)}", styles["ResultsMeta"]),
        Paragraph(f"Players: {len(game.players)}", styles["ResultsMeta"]),
        Paragraph(f"Generated: {ts.strftime('%Y-%m-%d')}", styles["ResultsMeta"]),
        Spacer(1, 6 * mm),
        HRFlowable(width="100%", thickness=0.5, color=_PDF_COLOR_RULE, spaceBefore=2, spaceAfter=10),
    ]

    for paragraph in render_story_markup(game, game.selected_answers).split("\n"):
        if paragraph.strip():
            elements.append(Paragraph(paragraph, styles["StoryBody"]))

    elements.append(HRFlowable(width="100%", thickness=0.5, color=_PDF_COLOR_RULE, spaceBefore=10, spaceAfter=10))
    elements.append(Paragraph("Answer Key", styles["KeyHeading"]))
    for entry in answer_key(game, game.selected_answers):
        elements.append(Paragraph(
            f"{entry['index']}. {markup_escape(str(entry['type']))}: "
            f"<b>{markup_escape(str(entry['answer']))}</b> <i>- {markup_escape(str(entry['player_name']))}</i>",
            styles["KeyEntry"],
        ))

    doc.build(elements)
    return buf.getvalue()
