"""
Models / game.py
Role:
- Typed snapshot of one Mad Libs game document, as persisted under `game:<code>`.
- The JSON wire format uses camelCase keys (`selectedAnswers`,
  `showResultsToPlayers`...); Python code uses the snake_case attributes.

Notes:
- Older documents may lack optional fields; defaults fill them in
  (`showResultsToPlayers=False`, `version=0`, empty players/submissions).
- `selected_answers` is present if and only if the game has ended. A document
  breaking that rule is rejected at validation time.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

GameStatus = Literal["draft", "active", "ended"]

STATUS_DRAFT: GameStatus = "draft"
STATUS_ACTIVE: GameStatus = "active"
STATUS_ENDED: GameStatus = "ended"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        """JSON-ready dict with camelCase keys (persistence/wire format)."""
        return self.model_dump(mode="json", by_alias=True)


class Blank(_CamelModel):
    """A fill-in slot of the story template."""
    id: str
    type: str  # free-text category label ("Noun", "Holiday Food"...)
    index: int  # 1-based display order, contiguous


class Player(_CamelModel):
    name: str
    joined_at: datetime = Field(default_factory=utcnow)


class Submission(_CamelModel):
    """One player's answer for one blank (player name denormalized at submit time)."""
    player_id: str
    player_name: str
    answer: str
    submitted_at: datetime = Field(default_factory=utcnow)


class SelectedAnswer(_CamelModel):
    """Outcome of the reveal draw for one blank."""
    answer: str
    player_id: str
    player_name: str


class Game(_CamelModel):
    """Root aggregate, identified by its 6-character `code`."""
    code: str
    title: str
    story: str
    blanks: List[Blank] = Field(default_factory=list)
    status: GameStatus = STATUS_DRAFT
    players: Dict[str, Player] = Field(default_factory=dict)
    submissions: Dict[str, List[Submission]] = Field(default_factory=dict)
    selected_answers: Optional[Dict[str, Optional[SelectedAnswer]]] = None
    show_results_to_players: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    # Bumped by the store on every save (optimistic concurrency check)
    version: int = 0

    @model_validator(mode="after")
    def _selected_answers_only_when_ended(self) -> "Game":
        if (self.status == STATUS_ENDED) != (self.selected_answers is not None):
            raise ValueError("selectedAnswers must be set if and only if status is 'ended'")
        return self

    def submissions_for(self, blank_id: str) -> List[Submission]:
        return self.submissions.get(blank_id, [])

    def has_submitted(self, player_id: str, blank_id: str) -> bool:
        return any(s.player_id == player_id for s in self.submissions_for(blank_id))

