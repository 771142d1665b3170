"""
Service: dev_tools.py
Role:
- Helpers for rehearsing a game without a room full of people: fake players,
  simulated submissions, a preview of the reveal draw, a sample story, and
  wiping every stored game.
- Exposed by `routes/dev.py` only when `settings.DEV_TOOLS_ENABLED` is True.
"""
from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional

from madlibs.models.game import STATUS_ENDED, Game, SelectedAnswer
from .answer_selector import select_answers
from .errors import AlreadySubmitted, GameFull
from .game_service import GameService
from .ledger import append_submissions
from .story_template import make_marker, parse_blanks

logger = logging.getLogger(__name__)

FAKE_NAMES = [
    "Alex", "Sam", "Jordan", "Taylor", "Casey", "Riley", "Morgan", "Jamie",
    "Avery", "Quinn", "Drew", "Reese", "Skyler", "Rowan", "Parker",
]

FAKE_ANSWERS: Dict[str, List[str]] = {
    "Noun": ["banana", "spreadsheet", "trombone", "cactus"],
    "Plural Noun": ["penguins", "staplers", "meatballs"],
    "Verb": ["juggle", "whisper", "moonwalk"],
    "Verb ending in -ing": ["yodeling", "napping", "sprinting"],
    "Adjective": ["sparkly", "grumpy", "suspicious"],
    "Animal": ["llama", "octopus", "hamster"],
    "Number": ["7", "42", "a million"],
}

SAMPLE_TITLE = "The Office Holiday Party"


def sample_story() -> Dict[str, object]:
    """A ready-made template with its parsed blanks."""
    story = (
        f"This year the holiday party started with a {make_marker('s1', 'Adjective')} surprise: "
        f"someone brought a {make_marker('s2', 'Animal')} dressed as Santa.\n"
        f"Everyone kept {make_marker('s3', 'Verb ending in -ing')} until the "
        f"{make_marker('s4', 'Holiday Food')} ran out.\n"
        f"By midnight, {make_marker('s5', 'Number')} {make_marker('s6', 'Plural Noun')} "
        f"had been lost in the break room."
    )
    blanks = parse_blanks(story)
    return {"title": SAMPLE_TITLE, "story": story, "blanks": [b.to_document() for b in blanks]}


def fake_answer(blank_type: str, rng: random.Random) -> str:
    choices = FAKE_ANSWERS.get(blank_type)
    if choices:
        return rng.choice(choices)
    return f"{blank_type.lower()} #{rng.randint(1, 99)}"


def add_fake_players(service: GameService, code: str, count: int = 5) -> List[str]:
    """Join up to `count` fake players (stops quietly at capacity)."""
    joined: List[str] = []
    for _ in range(max(0, count)):
        name = f"{service.rng.choice(FAKE_NAMES)} {service.rng.randint(1, 99)}"
        try:
            _, player_id = service.join_game(code, name)
        except GameFull:
            break
        joined.append(player_id)
    return joined


def simulate_submissions(service: GameService, code: str) -> Game:
    """Answer every blank for every joined player who has not answered it yet."""
    rng = service.rng

    def _apply(game: Game) -> Game:
        for player_id, player in game.players.items():
            answers = {b.id: fake_answer(b.type, rng) for b in game.blanks}
            try:
                game = append_submissions(game, player_id, player.name, answers, now=service.clock())
            except AlreadySubmitted:
                continue
        return game

    return service.store.update(code, _apply, attempts=service.merge_attempts)


def preview_selection(game: Game, rng: Optional[random.Random] = None) -> Dict[str, Optional[SelectedAnswer]]:
    """
    Answers the reveal shows: the frozen draw of an ended game, otherwise a
    dry run of the draw on the current submissions (nothing is persisted).
    """
    if game.status == STATUS_ENDED and game.selected_answers is not None:
        return dict(game.selected_answers)
    return select_answers(game.blanks, game.submissions, rng=rng)


def clear_all_games(service: GameService) -> List[str]:
    """Delete every stored game; returns the deleted codes."""
    deleted = [code for code in service.store.list_codes() if service.store.delete(code)]
    logger.warning("All games cleared", extra={"deleted": len(deleted)})
    return deleted
