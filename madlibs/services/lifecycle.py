"""
Service: lifecycle.py
Role:
- Pure transition rules over a Game's status: draft -> active -> ended, plus
  the one-way `show_results_to_players` switch once ended.
- Each function takes a Game and returns an updated copy. Nothing here
  touches the store: `GameService` does the read-modify-write.

Transitions:
- start  : draft  -> active (players may join and submit)
- end    : active -> ended  (draws the answers once, hides results)
- reveal : ended, show_results_to_players False -> True

Guards:
- Ending a game that is not active raises InvalidTransition, so a reveal is
  never re-randomized.
- Joining requires `active` and free capacity.
- Saved drafts always carry blanks numbered 1..n in the given order.
"""
from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Dict, FrozenSet, List, Optional, Sequence

from madlibs.config.settings import settings
from madlibs.models.game import (
    STATUS_ACTIVE,
    STATUS_DRAFT,
    STATUS_ENDED,
    Blank,
    Game,
    GameStatus,
    Player,
    utcnow,
)
from .answer_selector import select_answers
from .errors import GameFull, GameNotActive, InvalidTransition, ValidationError
from .story_template import find_markers, reindex, validate_draft

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[GameStatus, FrozenSet[GameStatus]] = {
    STATUS_DRAFT: frozenset({STATUS_ACTIVE}),
    STATUS_ACTIVE: frozenset({STATUS_ENDED}),
    STATUS_ENDED: frozenset(),
}


def _require_transition(game: Game, target: GameStatus) -> None:
    if target not in TRANSITIONS[game.status]:
        raise InvalidTransition(
            f"Cannot move game {game.code} from '{game.status}' to '{target}'",
            details={"status": game.status, "target": target},
        )


# -----------------------------
# Queries
# -----------------------------
def can_edit(game: Game) -> bool:
    return game.status == STATUS_DRAFT


def can_join(game: Game, max_players: Optional[int] = None) -> bool:
    limit = settings.MAX_PLAYERS if max_players is None else max_players
    return game.status == STATUS_ACTIVE and len(game.players) < limit


def can_submit(game: Game) -> bool:
    return game.status == STATUS_ACTIVE


def can_reveal(game: Game) -> bool:
    return game.status == STATUS_ENDED and not game.show_results_to_players


def results_visible_to_players(game: Game) -> bool:
    return game.status == STATUS_ENDED and game.show_results_to_players


def check_invariants(game: Game) -> List[str]:
    """Human-readable list of broken invariants (empty when the document is sane)."""
    problems: List[str] = []
    ids = [b.id for b in game.blanks]
    if len(ids) != len(set(ids)):
        problems.append("duplicate blank ids")
    if [b.index for b in game.blanks] != list(range(1, len(game.blanks) + 1)):
        problems.append("blank indexes are not contiguous")
    marker_ids = {bid for bid, _ in find_markers(game.story)}
    if marker_ids != set(ids):
        problems.append("story markers and blanks differ")
    if (game.status == STATUS_ENDED) != (game.selected_answers is not None):
        problems.append("selectedAnswers set outside the ended status")
    for blank_id, entries in game.submissions.items():
        players = [s.player_id for s in entries]
        if len(players) != len(set(players)):
            problems.append(f"duplicate submissions for blank {blank_id}")
    return problems


# -----------------------------
# Author edits (draft only)
# -----------------------------
def create_draft(
    code: str,
    title: str,
    story: str,
    blanks: Sequence[Blank],
    now: Optional[datetime] = None,
) -> Game:
    validate_draft(title, story, blanks)
    ts = now or utcnow()
    return Game(
        code=code,
        title=title.strip(),
        story=story,
        blanks=reindex(blanks),
        status=STATUS_DRAFT,
        created_at=ts,
        updated_at=ts,
    )


def update_draft(
    game: Game,
    title: str,
    story: str,
    blanks: Sequence[Blank],
    now: Optional[datetime] = None,
) -> Game:
    if not can_edit(game):
        raise InvalidTransition(
            f"Game {game.code} can only be edited while in draft",
            details={"status": game.status},
        )
    validate_draft(title, story, blanks)
    kept = {b.id for b in blanks}
    return game.model_copy(
        update={
            "title": title.strip(),
            "story": story,
            "blanks": reindex(blanks),
            "submissions": {k: v for k, v in game.submissions.items() if k in kept},
            "updated_at": now or utcnow(),
        },
        deep=True,
    )


# -----------------------------
# Transitions
# -----------------------------
def start(game: Game, now: Optional[datetime] = None) -> Game:
    _require_transition(game, STATUS_ACTIVE)
    logger.info("Game started", extra={"game_code": game.code, "blanks": len(game.blanks)})
    return game.model_copy(update={"status": STATUS_ACTIVE, "updated_at": now or utcnow()}, deep=True)


def end(game: Game, now: Optional[datetime] = None, rng: Optional[random.Random] = None) -> Game:
    """Close submissions and freeze one randomly drawn answer per blank."""
    _require_transition(game, STATUS_ENDED)
    selected = select_answers(game.blanks, game.submissions, rng=rng)
    logger.info(
        "Game ended",
        extra={
            "game_code": game.code,
            "players": len(game.players),
            "unfilled_blanks": sum(1 for v in selected.values() if v is None),
        },
    )
    return game.model_copy(
        update={
            "status": STATUS_ENDED,
            "selected_answers": selected,
            "show_results_to_players": False,
            "updated_at": now or utcnow(),
        },
        deep=True,
    )


def reveal(game: Game, now: Optional[datetime] = None) -> Game:
    """One-way switch making the final story visible to players."""
    if game.status != STATUS_ENDED:
        raise InvalidTransition(
            f"Results of game {game.code} can only be shown once it has ended",
            details={"status": game.status},
        )
    if game.show_results_to_players:
        return game
    logger.info("Results revealed to players", extra={"game_code": game.code})
    return game.model_copy(update={"show_results_to_players": True, "updated_at": now or utcnow()}, deep=True)


# -----------------------------
# Players
# -----------------------------
def join(
    game: Game,
    player_id: str,
    name: str,
    now: Optional[datetime] = None,
    max_players: Optional[int] = None,
) -> Game:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Please enter your name")
    if game.status != STATUS_ACTIVE:
        message = "This game hasn't started yet" if game.status == STATUS_DRAFT else "This game has already ended"
        raise GameNotActive(message, details={"status": game.status})
    limit = settings.MAX_PLAYERS if max_players is None else max_players
    if len(game.players) >= limit:
        raise GameFull("Game is full! Maximum players reached.", details={"max_players": limit})
    ts = now or utcnow()
    players = dict(game.players)
    players[player_id] = Player(name=name, joined_at=ts)
    return game.model_copy(update={"players": players, "updated_at": ts}, deep=True)
