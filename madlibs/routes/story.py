"""
Module routes/story.py
Role:
- Helpers for the story editor: suggested blank types with hints, blank
  parsing of a template, and turning a text selection into a blank (or
  removing one, the remaining blanks being renumbered).

Notes:
- Stateless: the editor sends its current story and blanks, gets the new
  ones back and saves them with `PUT /games/{code}`.
"""
from typing import List, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from madlibs.models.game import Blank
from madlibs.services.story_template import (
    BLANK_TYPE_HINTS,
    BLANK_TYPES,
    find_markers,
    insert_blank,
    parse_blanks,
    remove_blank,
)

router = APIRouter(prefix="/story", tags=["story"])


class StoryPayload(BaseModel):
    story: str


class InsertBlankPayload(BaseModel):
    story: str
    blanks: List[Blank] = []
    blank_type: str
    start: int
    # Defaults to `start` (insert at the cursor)
    end: Optional[int] = None


class RemoveBlankPayload(BaseModel):
    story: str
    blanks: List[Blank] = []
    blank_id: str


def _draft(story: str, blanks: List[Blank]) -> dict:
    return {"story": story, "blanks": [b.to_document() for b in blanks]}


@router.get("/blank-types")
def blank_types():
    return {
        "types": [{"type": t, "hint": BLANK_TYPE_HINTS.get(t)} for t in BLANK_TYPES],
        "custom_allowed": True,
    }


@router.post("/parse")
def parse_story(payload: StoryPayload):
    blanks = parse_blanks(payload.story)
    return {
        "blanks": [b.to_document() for b in blanks],
        "marker_count": len(find_markers(payload.story)),
    }


@router.post("/insert-blank")
def add_blank(payload: InsertBlankPayload):
    """Replace story[start:end] with a new blank marker."""
    story, blanks = insert_blank(payload.story, payload.blanks, payload.blank_type, payload.start, payload.end)
    return {"ok": True, **_draft(story, blanks)}


@router.post("/remove-blank")
def delete_blank(payload: RemoveBlankPayload):
    story, blanks = remove_blank(payload.story, payload.blanks, payload.blank_id)
    return {"ok": True, **_draft(story, blanks)}
