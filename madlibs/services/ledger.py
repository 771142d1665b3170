"""
Service: ledger.py
Role:
- Append-only per-blank list of player submissions, at most one entry per
  (player, blank) pair.

Read-modify-write:
- `SubmissionLedger.record_submission` never trusts the caller's copy of the
  game: it re-reads the stored document right before appending, then saves
  with the version it read (`GameStore.update`). If another player saved in
  between, the fresh document is re-read and the append re-applied, so two
  "simultaneous" submissions both survive.

Idempotence:
- A blank the player already answered is left untouched. If nothing at all
  was appended the call raises AlreadySubmitted.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, List, Mapping, Optional

from madlibs.models.game import STATUS_ACTIVE, Game, Submission, utcnow
from .errors import AlreadySubmitted, GameNotActive, NotFound, ValidationError
from .game_store import GameStore

logger = logging.getLogger(__name__)


def unanswered_blanks(game: Game, answers: Mapping[str, str]) -> List[str]:
    return [b.id for b in game.blanks if not (answers.get(b.id) or "").strip()]


def append_submissions(
    game: Game,
    player_id: str,
    player_name: str,
    answers: Mapping[str, str],
    now: Optional[datetime] = None,
) -> Game:
    """Pure append of one player's answers; see module notes for the rules."""
    if game.status != STATUS_ACTIVE:
        raise GameNotActive(
            "Submissions are closed for this game" if game.status == "ended" else "This game hasn't started yet",
            details={"status": game.status},
        )
    if player_id not in game.players:
        raise NotFound("Player not found in this game, please join first", details={"player_id": player_id})

    missing = unanswered_blanks(game, answers)
    if missing:
        raise ValidationError(
            f"Please fill in all {len(missing)} remaining blanks!",
            details={"unanswered": len(missing), "blank_ids": missing},
        )

    ts = now or utcnow()
    submissions: Dict[str, List[Submission]] = {k: list(v) for k, v in game.submissions.items()}
    appended = 0
    for blank in game.blanks:
        bucket = submissions.setdefault(blank.id, [])
        if any(s.player_id == player_id for s in bucket):
            continue
        bucket.append(
            Submission(
                player_id=player_id,
                player_name=player_name,
                answer=answers[blank.id].strip(),
                submitted_at=ts,
            )
        )
        appended += 1

    if not appended:
        raise AlreadySubmitted("You have already submitted your answers", details={"player_id": player_id})
    return game.model_copy(update={"submissions": submissions, "updated_at": ts}, deep=True)


class SubmissionLedger:
    def __init__(
        self,
        store: GameStore,
        clock: Callable[[], datetime] = utcnow,
        merge_attempts: Optional[int] = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.merge_attempts = merge_attempts

    def record_submission(
        self,
        code: str,
        player_id: str,
        player_name: Optional[str],
        answers: Mapping[str, str],
    ) -> Game:
        """
        Append the player's answers to the authoritative document.
        `player_name` defaults to the name the player joined with.
        """

        def _apply(current: Game) -> Game:
            player = current.players.get(player_id)
            name = player_name or (player.name if player else "")
            return append_submissions(current, player_id, name, answers, now=self.clock())

        stored = self.store.update(code, _apply, attempts=self.merge_attempts)
        logger.info(
            "Answers recorded",
            extra={"game_code": stored.code, "player_id": player_id, "version": stored.version},
        )
        return stored

    @staticmethod
    def submitters(game: Game) -> set:
        """Ids of players with at least one recorded answer."""
        return {s.player_id for entries in game.submissions.values() for s in entries}
