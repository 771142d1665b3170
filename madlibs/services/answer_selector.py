"""
Service: answer_selector.py
Role:
- The reveal draw: for each blank pick one recorded submission uniformly at
  random, or None when nobody answered it.

Notes:
- Not idempotent (a second call re-randomizes); the lifecycle only calls it
  on the active -> ended transition.
- `rng` is injectable so tests can replay a draw with a seeded `random.Random`.
"""
import random
from typing import Dict, List, Mapping, Optional, Sequence

from madlibs.models.game import Blank, SelectedAnswer, Submission


def select_answers(
    blanks: Sequence[Blank],
    submissions: Optional[Mapping[str, List[Submission]]] = None,
    rng: Optional[random.Random] = None,
) -> Dict[str, Optional[SelectedAnswer]]:
    rnd = rng or random
    submissions = submissions or {}
    selected: Dict[str, Optional[SelectedAnswer]] = {}
    for blank in blanks:
        entries = submissions.get(blank.id) or []
        if not entries:
            selected[blank.id] = None
            continue
        choice = rnd.choice(entries)
        selected[blank.id] = SelectedAnswer(
            answer=choice.answer,
            player_id=choice.player_id,
            player_name=choice.player_name,
        )
    return selected
