"""
Service: story_template.py
Role:
- Parse and edit the inline blank markers `[[BLANK:<id>:<type>]]` of a story.
- Validate a draft before it is persisted (title, story, blanks, markers).
- Expose the open blank-type vocabulary with player hints.

Notes:
- Blank types are free text: the lookup below only provides hints for the
  common ones. Unknown/custom types simply have no hint.
- Blank `index` is 1-based and re-numbered after every removal.
"""
from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from madlibs.models.game import Blank
from madlibs.utils.codes import new_blank_id
from .errors import ValidationError

BLANK_PATTERN = re.compile(r"\[\[BLANK:([^:\]]+):([^\]]+)\]\]")

# Suggested types for the story editor. Not a closed enumeration.
BLANK_TYPES: Tuple[str, ...] = (
    "Noun",
    "Plural Noun",
    "Verb",
    "Verb ending in -ing",
    "Adjective",
    "Adverb",
    "Number",
    "Name",
    "Emotion",
    "Holiday Food",
    "Music Genre",
    "Team Name",
    "Coworker Name",
    "Animal",
    "Holiday Song Title",
)

BLANK_TYPE_HINTS: Dict[str, str] = {
    "Noun": "A person, place or thing (e.g. banana, castle)",
    "Plural Noun": "More than one thing (e.g. socks, penguins)",
    "Verb": "An action word (e.g. jump, sing)",
    "Verb ending in -ing": "An action in progress (e.g. dancing, yelling)",
    "Adjective": "A describing word (e.g. sparkly, grumpy)",
    "Adverb": "Describes how something is done (e.g. loudly, sneakily)",
    "Number": "Any number (e.g. 7, a million)",
    "Name": "Any person's name",
    "Emotion": "A feeling (e.g. joy, dread)",
    "Holiday Food": "Something eaten at a holiday party (e.g. fruitcake)",
    "Music Genre": "A style of music (e.g. polka, death metal)",
    "Team Name": "A team at work or in sports",
    "Coworker Name": "Someone you work with",
    "Animal": "Any creature (e.g. llama, octopus)",
    "Holiday Song Title": "A seasonal song (e.g. Jingle Bells)",
}


def blank_hint(blank_type: str) -> Optional[str]:
    return BLANK_TYPE_HINTS.get(blank_type)


def make_marker(blank_id: str, blank_type: str) -> str:
    return f"[[BLANK:{blank_id}:{blank_type}]]"


def find_markers(story: str) -> List[Tuple[str, str]]:
    """(id, type) for every marker, in order of appearance."""
    return [(m.group(1), m.group(2)) for m in BLANK_PATTERN.finditer(story or "")]


def parse_blanks(story: str) -> List[Blank]:
    """Blanks derived from the markers of `story` (first occurrence of each id wins)."""
    blanks: List[Blank] = []
    seen = set()
    for blank_id, blank_type in find_markers(story):
        if blank_id in seen:
            continue
        seen.add(blank_id)
        blanks.append(Blank(id=blank_id, type=blank_type, index=len(blanks) + 1))
    return blanks


def reindex(blanks: Iterable[Blank]) -> List[Blank]:
    return [b.model_copy(update={"index": i}) for i, b in enumerate(blanks, start=1)]


def insert_blank(
    story: str,
    blanks: Sequence[Blank],
    blank_type: str,
    start: int,
    end: Optional[int] = None,
    blank_id: Optional[str] = None,
) -> Tuple[str, List[Blank]]:
    """
    Replace story[start:end] with a new marker and append the matching blank.
    Returns the new (story, blanks).
    """
    blank_type = (blank_type or "").strip()
    if not blank_type:
        raise ValidationError("A blank needs a type")
    if ":" in blank_type or "]" in blank_type:
        raise ValidationError("Blank types cannot contain ':' or ']'")
    end = start if end is None else end
    if not 0 <= start <= end <= len(story):
        raise ValidationError("Selection is outside the story")
    bid = blank_id or new_blank_id()
    new_story = story[:start] + make_marker(bid, blank_type) + story[end:]
    new_blanks = list(blanks) + [Blank(id=bid, type=blank_type, index=len(blanks) + 1)]
    return new_story, new_blanks


def remove_blank(story: str, blanks: Sequence[Blank], blank_id: str) -> Tuple[str, List[Blank]]:
    """Drop every marker of `blank_id` and re-number the remaining blanks."""
    pattern = re.compile(r"\[\[BLANK:" + re.escape(blank_id) + r":[^\]]+\]\]")
    new_story = pattern.sub("", story)
    return new_story, reindex(b for b in blanks if b.id != blank_id)


def validate_draft(title: str, story: str, blanks: Sequence[Blank]) -> None:
    """Raise ValidationError unless the draft can be persisted."""
    if not (title or "").strip():
        raise ValidationError("Please enter a game title")
    if not (story or "").strip():
        raise ValidationError("Please enter a story")
    if not blanks:
        raise ValidationError("Please add at least one blank")

    ids = [b.id for b in blanks]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise ValidationError("Duplicate blank ids", details={"blank_ids": duplicates})

    marker_ids = {blank_id for blank_id, _ in find_markers(story)}
    missing_blanks = sorted(marker_ids - set(ids))
    if missing_blanks:
        raise ValidationError(
            "The story references blanks that are not defined",
            details={"blank_ids": missing_blanks},
        )
    missing_markers = [i for i in ids if i not in marker_ids]
    if missing_markers:
        raise ValidationError(
            "Some blanks do not appear in the story",
            details={"blank_ids": missing_markers},
        )

    types = {b.id: b.type for b in blanks}
    mismatched = sorted({bid for bid, btype in find_markers(story) if types[bid] != btype})
    if mismatched:
        raise ValidationError(
            "Blank types do not match the story",
            details={"blank_ids": mismatched},
        )
