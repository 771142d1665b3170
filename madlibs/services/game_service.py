"""
Service: game_service.py
Role:
- Entry point for every author and player action on a game. Each action is
  a full-document read-modify-write through `GameStore.update`, applying one
  of the pure functions of `lifecycle` / `ledger`.
- Builds the views served to the author dashboard and to player screens.

Integrations:
- `GameStore` (persistence), `SubmissionLedger` (answers), `lifecycle`
  (transition rules), `story_renderer` (final story and answer key).
- Routes obtain the shared instance with `get_game_service()`.

Notes:
- `rng` is used for game codes and for the reveal draw; tests pass a seeded
  `random.Random`.
- Codes typed by players are trimmed and uppercased before lookup.
"""
from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from madlibs.config.settings import settings
from madlibs.models.game import STATUS_ENDED, Blank, Game, utcnow
from madlibs.utils.codes import generate_game_code, new_player_id, normalize_code
from . import lifecycle
from .errors import NotFound, StorageFailure
from .game_store import GameStore, build_store
from .ledger import SubmissionLedger
from .story_renderer import answer_key, render_preview, render_story, render_story_html
from .story_template import blank_hint, parse_blanks

logger = logging.getLogger(__name__)


class GameService:
    def __init__(
        self,
        store: GameStore,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utcnow,
        max_players: Optional[int] = None,
        merge_attempts: Optional[int] = None,
    ) -> None:
        self.store = store
        self.rng = rng or random.Random()
        self.clock = clock
        self.max_players = settings.MAX_PLAYERS if max_players is None else max_players
        self.merge_attempts = merge_attempts
        self.ledger = SubmissionLedger(store, clock=clock, merge_attempts=merge_attempts)

    def _update(self, code: str, mutate: Callable[[Game], Game]) -> Game:
        return self.store.update(code, mutate, attempts=self.merge_attempts)

    # -----------------------------
    # Reads
    # -----------------------------
    def find_game(self, code: str) -> Optional[Game]:
        return self.store.load(normalize_code(code))

    def get_game(self, code: str) -> Game:
        game = self.find_game(code)
        if game is None:
            raise NotFound("Game not found. Check your code!", details={"code": normalize_code(code)})
        return game

    def list_games(self) -> List[Game]:
        """Every stored game, most recently updated first (unreadable documents skipped)."""
        games: List[Game] = []
        for code in self.store.list_codes():
            try:
                game = self.store.load(code)
            except StorageFailure:
                logger.warning("Skipping unreadable game", extra={"game_code": code})
                continue
            if game is not None:
                games.append(game)
        games.sort(key=lambda g: g.updated_at, reverse=True)
        return games

    def status_counts(self, games: Optional[Sequence[Game]] = None) -> Dict[str, int]:
        games = self.list_games() if games is None else games
        counts = {"total": len(games), "draft": 0, "active": 0, "ended": 0}
        for game in games:
            counts[game.status] += 1
        return counts

    # -----------------------------
    # Author actions
    # -----------------------------
    def create_game(self, title: str, story: str, blanks: Optional[Sequence[Blank]] = None) -> Game:
        """Validate and persist a new draft. Blanks default to the story markers."""
        blanks = parse_blanks(story) if blanks is None else list(blanks)
        code = generate_game_code(self.rng)
        draft = lifecycle.create_draft(code, title, story, blanks, now=self.clock())
        stored = self.store.save(draft)
        logger.info("Game created", extra={"game_code": stored.code, "blanks": len(blanks)})
        return stored

    def update_game(
        self,
        code: str,
        title: str,
        story: str,
        blanks: Optional[Sequence[Blank]] = None,
    ) -> Game:
        blanks = parse_blanks(story) if blanks is None else list(blanks)
        return self._update(code, lambda g: lifecycle.update_draft(g, title, story, blanks, now=self.clock()))

    def start_game(self, code: str) -> Game:
        return self._update(code, lambda g: lifecycle.start(g, now=self.clock()))

    def end_game(self, code: str) -> Game:
        return self._update(code, lambda g: lifecycle.end(g, now=self.clock(), rng=self.rng))

    def reveal_results(self, code: str) -> Game:
        return self._update(code, lambda g: lifecycle.reveal(g, now=self.clock()))

    def delete_game(self, code: str) -> None:
        if not self.store.delete(normalize_code(code)):
            raise NotFound("Game not found. Check your code!", details={"code": normalize_code(code)})
        logger.info("Game deleted", extra={"game_code": normalize_code(code)})

    # -----------------------------
    # Player actions
    # -----------------------------
    def join_game(self, code: str, name: str) -> Tuple[Game, str]:
        """Register a player; returns the stored game and the new player id."""
        player_id = new_player_id()
        stored = self._update(
            code,
            lambda g: lifecycle.join(g, player_id, name, now=self.clock(), max_players=self.max_players),
        )
        logger.info(
            "Player joined",
            extra={"game_code": stored.code, "player_id": player_id, "players": len(stored.players)},
        )
        return stored, player_id

    def submit_answers(
        self,
        code: str,
        player_id: str,
        answers: Mapping[str, str],
        player_name: Optional[str] = None,
    ) -> Game:
        return self.ledger.record_submission(normalize_code(code), player_id, player_name, answers)

    # -----------------------------
    # Views
    # -----------------------------
    @staticmethod
    def game_stats(game: Game) -> Dict[str, Any]:
        return {
            "player_count": len(game.players),
            "unique_submitters": len(SubmissionLedger.submitters(game)),
            "submissions_per_blank": {b.id: len(game.submissions_for(b.id)) for b in game.blanks},
        }

    def author_view(self, game: Game) -> Dict[str, Any]:
        view: Dict[str, Any] = {
            "game": game.to_document(),
            "stats": self.game_stats(game),
            "max_players": self.max_players,
            "preview": render_preview(game),
        }
        if game.status == STATUS_ENDED:
            view["story"] = render_story(game, game.selected_answers)
            view["story_html"] = render_story_html(game, game.selected_answers)
            view["answer_key"] = answer_key(game, game.selected_answers)
        return view

    def player_view(self, game: Game, player_id: Optional[str] = None) -> Dict[str, Any]:
        """What a player screen may show. The story only once the host revealed it."""
        player = game.players.get(player_id) if player_id else None
        has_submitted = bool(player_id) and any(game.has_submitted(player_id, b.id) for b in game.blanks)
        visible = lifecycle.results_visible_to_players(game)
        view: Dict[str, Any] = {
            "code": game.code,
            "title": game.title,
            "status": game.status,
            "version": game.version,
            "updated_at": game.updated_at.isoformat(),
            "player_count": len(game.players),
            "max_players": self.max_players,
            "blanks": [
                {"id": b.id, "type": b.type, "index": b.index, "hint": blank_hint(b.type)}
                for b in game.blanks
            ],
            "player": {"player_id": player_id, "name": player.name} if player else None,
            "has_submitted": has_submitted,
            "results_visible": visible,
        }
        if visible:
            view["story"] = render_story(game, game.selected_answers)
            view["story_html"] = render_story_html(game, game.selected_answers)
            view["answer_key"] = answer_key(game, game.selected_answers)
        return view


# -----------------------------
# Shared instance
# -----------------------------
_instance: Optional[GameService] = None


def get_game_service() -> GameService:
    """Single `GameService` for the whole backend (lazy-built from settings)."""
    global _instance
    if _instance is None:
        _instance = GameService(build_store())
    return _instance


def set_game_service(service: Optional[GameService]) -> None:
    """Replace (or reset with None) the shared instance."""
    global _instance
    _instance = service
