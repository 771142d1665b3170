"""
Module routes/dev.py
Role:
- Rehearsal helpers for the host: fake players, simulated answers, preview
  of the reveal draw, sample story, clearing every game.

Mounting:
- Included by `main.py` only when `settings.DEV_TOOLS_ENABLED` is True.
"""
from fastapi import APIRouter, Depends, Query

from madlibs.deps.auth import admin_required
from madlibs.services import dev_tools
from madlibs.services.game_service import GameService, get_game_service
from madlibs.services.story_renderer import render_story

router = APIRouter(prefix="/dev", tags=["dev"], dependencies=[Depends(admin_required)])


@router.get("/sample-story")
def sample_story():
    return dev_tools.sample_story()


@router.post("/games/{code}/fake-players")
def fake_players(
    code: str,
    count: int = Query(default=5, ge=1, le=100),
    service: GameService = Depends(get_game_service),
):
    joined = dev_tools.add_fake_players(service, code, count)
    game = service.get_game(code)
    return {"ok": True, "added": len(joined), "player_count": len(game.players)}


@router.post("/games/{code}/simulate-submissions")
def simulate_submissions(code: str, service: GameService = Depends(get_game_service)):
    game = dev_tools.simulate_submissions(service, code)
    return {"ok": True, **service.game_stats(game)}


@router.get("/games/{code}/preview-selection")
def preview_selection(code: str, service: GameService = Depends(get_game_service)):
    game = service.get_game(code)
    selected = dev_tools.preview_selection(game, rng=service.rng)
    return {
        "ok": True,
        "frozen": game.status == "ended",
        "story": render_story(game, selected),
        "selected": {k: (v.to_document() if v else None) for k, v in selected.items()},
    }


@router.delete("/games")
def clear_all_games(service: GameService = Depends(get_game_service)):
    """Wipe every stored game (rehearsal reset)."""
    deleted = dev_tools.clear_all_games(service)
    return {"ok": True, "deleted": deleted}
