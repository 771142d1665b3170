"""
Service: story_renderer.py
Role:
- Turn a story template plus the selected answers into the final story.
- One substitution routine (`substitute`) feeds every render target: plain
  text, HTML for the on-screen view and ReportLab markup for the PDF. The
  targets only differ in how they escape text and emphasize answers, so the
  displayed and exported stories cannot diverge.

Rules:
- A marker of a known blank becomes the selected answer, or `[<type>]` when
  the blank has no answer (missing, null or empty).
- Markers of unknown ids are left as they are.
"""
from __future__ import annotations

import html
from typing import Callable, Dict, List, Mapping, Optional

from madlibs.models.game import Blank, Game, SelectedAnswer
from .story_template import BLANK_PATTERN

NOT_FILLED = "[Not filled]"
UNKNOWN_PLAYER = "Unknown"

Answers = Mapping[str, Optional[SelectedAnswer]]


def _identity(text: str) -> str:
    return text


def placeholder(blank: Blank) -> str:
    return f"[{blank.type}]"


def display_value(blank: Blank, answers: Optional[Answers]) -> str:
    selected = (answers or {}).get(blank.id)
    if selected is not None and selected.answer:
        return selected.answer
    return placeholder(blank)


def substitute(
    game: Game,
    answers: Optional[Answers],
    escape: Callable[[str], str] = _identity,
    emphasize: Callable[[str], str] = _identity,
) -> str:
    """
    Single pass over the story markers.
    `escape` is applied to every literal segment and value, `emphasize` wraps
    each substituted (already escaped) value.
    """
    by_id: Dict[str, Blank] = {b.id: b for b in game.blanks}
    parts: List[str] = []
    pos = 0
    for match in BLANK_PATTERN.finditer(game.story):
        parts.append(escape(game.story[pos:match.start()]))
        blank = by_id.get(match.group(1))
        if blank is None:
            parts.append(escape(match.group(0)))
        else:
            parts.append(emphasize(escape(display_value(blank, answers))))
        pos = match.end()
    parts.append(escape(game.story[pos:]))
    return "".join(parts)


def render_story(game: Game, answers: Optional[Answers]) -> str:
    """Plain text story (exports, API payloads)."""
    return substitute(game, answers)


def render_story_html(game: Game, answers: Optional[Answers]) -> str:
    """On-screen story: escaped HTML with highlighted answers."""
    return substitute(
        game,
        answers,
        escape=html.escape,
        emphasize=lambda value: f'<span class="blank-answer">{value}</span>',
    )


def markup_escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def render_story_markup(game: Game, answers: Optional[Answers]) -> str:
    """ReportLab paragraph markup (bold answers) used by the PDF export."""
    return substitute(game, answers, escape=markup_escape, emphasize=lambda value: f"<b>{value}</b>")


def render_preview(game: Game) -> str:
    """Editor preview: each marker shows `(<n>. <type>)`."""
    labels = {b.id: f"({b.index}. {b.type})" for b in game.blanks}

    def _label(match) -> str:
        return labels.get(match.group(1), match.group(0))

    return BLANK_PATTERN.sub(_label, game.story)


def answer_key(game: Game, answers: Optional[Answers]) -> List[Dict[str, object]]:
    """Per blank: its type, the chosen answer (or "[Not filled]") and who wrote it."""
    key: List[Dict[str, object]] = []
    for position, blank in enumerate(game.blanks, start=1):
        selected = (answers or {}).get(blank.id)
        key.append(
            {
                "index": position,
                "blank_id": blank.id,
                "type": blank.type,
                "answer": selected.answer if selected is not None and selected.answer else NOT_FILLED,
                "player_name": selected.player_name if selected is not None and selected.player_name else UNKNOWN_PLAYER,
                "filled": selected is not None,
            }
        )
    return key
