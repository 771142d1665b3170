"""
Module routes/play.py
Role:
- Player endpoints: join a game by code, submit answers, poll the game.

Notes:
- Codes are case-insensitive.
- `GET /play/{code}` is what player screens poll (every POLL_INTERVAL_SECONDS);
  the final story only appears once the host revealed it.
"""
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from madlibs.config.settings import settings
from madlibs.services.game_service import GameService, get_game_service

router = APIRouter(prefix="/play", tags=["play"])


class JoinPayload(BaseModel):
    name: str


class SubmitPayload(BaseModel):
    player_id: str
    answers: Dict[str, str] = Field(default_factory=dict)
    player_name: Optional[str] = None


@router.post("/{code}/join")
def join_game(code: str, payload: JoinPayload, service: GameService = Depends(get_game_service)):
    game, player_id = service.join_game(code, payload.name)
    return {
        "ok": True,
        "player_id": player_id,
        "message": f"Welcome, {payload.name.strip()}! Fill in your answers.",
        "poll_interval_seconds": settings.POLL_INTERVAL_SECONDS,
        **service.player_view(game, player_id),
    }


@router.post("/{code}/submit")
def submit_answers(code: str, payload: SubmitPayload, service: GameService = Depends(get_game_service)):
    game = service.submit_answers(code, payload.player_id, payload.answers, payload.player_name)
    return {
        "ok": True,
        "message": "Answers submitted! Wait for the game to end.",
        **service.player_view(game, payload.player_id),
    }


@router.get("/{code}")
def poll_game(
    code: str,
    player_id: Optional[str] = Query(default=None),
    service: GameService = Depends(get_game_service),
):
    game = service.get_game(code)
    return {"ok": True, **service.player_view(game, player_id)}
