"""
Module routes/games.py
Role:
- Host (author) endpoints: create/edit drafts, start, end, reveal, delete,
  dashboard listing and result exports.

Integrations:
- `GameService` for every read-modify-write.
- `admin_required` on the whole router (host only).

Notes:
- Domain errors (NotFound, InvalidTransition...) bubble up to the handler in
  `main.py` and come back as `{"ok": false, "error": ..., "detail": ...}`.
"""
from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel

from madlibs.deps.auth import admin_required
from madlibs.models.game import Blank
from madlibs.services.export import export_filename, export_pdf, export_text
from madlibs.services.game_service import GameService, get_game_service
from madlibs.services.story_template import reindex

router = APIRouter(prefix="/games", tags=["games"], dependencies=[Depends(admin_required)])


class GamePayload(BaseModel):
    title: str
    story: str
    # When omitted, blanks are parsed from the story markers
    blanks: Optional[List[Blank]] = None

    def normalized_blanks(self) -> Optional[List[Blank]]:
        return None if self.blanks is None else reindex(self.blanks)


def _summary(game) -> dict:
    return {
        "code": game.code,
        "title": game.title,
        "status": game.status,
        "player_count": len(game.players),
        "blank_count": len(game.blanks),
        "show_results_to_players": game.show_results_to_players,
        "created_at": game.created_at.isoformat(),
        "updated_at": game.updated_at.isoformat(),
    }


@router.get("")
def list_games(service: GameService = Depends(get_game_service)):
    """Dashboard listing, most recently updated first."""
    games = service.list_games()
    return {"ok": True, "games": [_summary(g) for g in games], "counts": service.status_counts(games)}


@router.get("/stats")
def games_stats(service: GameService = Depends(get_game_service)):
    return {"ok": True, "counts": service.status_counts()}


@router.post("")
def create_game(payload: GamePayload, service: GameService = Depends(get_game_service)):
    game = service.create_game(payload.title, payload.story, payload.normalized_blanks())
    return {"ok": True, "code": game.code, **service.author_view(game)}


@router.get("/{code}")
def get_game(code: str, service: GameService = Depends(get_game_service)):
    game = service.get_game(code)
    return {"ok": True, **service.author_view(game)}


@router.put("/{code}")
def update_game(code: str, payload: GamePayload, service: GameService = Depends(get_game_service)):
    game = service.update_game(code, payload.title, payload.story, payload.normalized_blanks())
    return {"ok": True, **service.author_view(game)}


@router.post("/{code}/start")
def start_game(code: str, service: GameService = Depends(get_game_service)):
    game = service.start_game(code)
    return {"ok": True, "message": "Game started! Players can now join.", **service.author_view(game)}


@router.post("/{code}/end")
def end_game(code: str, service: GameService = Depends(get_game_service)):
    game = service.end_game(code)
    return {
        "ok": True,
        "message": "Game ended! Show the results to players when ready.",
        **service.author_view(game),
    }


@router.post("/{code}/reveal")
def reveal_results(code: str, service: GameService = Depends(get_game_service)):
    game = service.reveal_results(code)
    return {"ok": True, "message": "Results are now visible to all players!", **service.author_view(game)}


@router.delete("/{code}")
def delete_game(code: str, service: GameService = Depends(get_game_service)):
    service.delete_game(code)
    return {"ok": True, "deleted": code.strip().upper()}


@router.get("/{code}/preview")
def preview_game(code: str, service: GameService = Depends(get_game_service)):
    game = service.get_game(code)
    return {"ok": True, "preview": service.author_view(game)["preview"]}


@router.get("/{code}/export")
def export_game(
    code: str,
    format: Literal["txt", "pdf"] = Query(default="txt"),
    service: GameService = Depends(get_game_service),
):
    """Download the final story and answer key (ended games only)."""
    game = service.get_game(code)
    filename = export_filename(game, format)
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    if format == "pdf":
        return Response(content=export_pdf(game), media_type="application/pdf", headers=headers)
    return PlainTextResponse(export_text(game), headers=headers)
