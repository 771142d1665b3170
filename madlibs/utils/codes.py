"""
Utils: codes.py
Role:
- Generate the identifiers handed out by the game: 6-character game codes,
  player ids and blank ids.

Notes:
- Game codes are drawn from [A-Z0-9]; collisions are not checked (36^6 codes).
- `normalize_code` is applied to every code typed by a player (case-insensitive).
"""
import random
import string
from typing import Optional
from uuid import uuid4

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6


def generate_game_code(rng: Optional[random.Random] = None) -> str:
    """Random 6-character game code. `rng` makes the draw reproducible in tests."""
    rnd = rng or random
    return "".join(rnd.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def new_player_id() -> str:
    return uuid4().hex


def new_blank_id() -> str:
    return uuid4().hex[:12]
