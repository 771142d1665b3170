"""
Module routes/health.py
Role:
- Liveness endpoint (service name + storage reachability).
"""
from fastapi import APIRouter, Depends

from madlibs.config.settings import settings
from madlibs.services.errors import StorageFailure
from madlibs.services.game_service import GameService, get_game_service

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health(service: GameService = Depends(get_game_service)):
    """Minimal OK with the configured service name and backend."""
    try:
        games = len(service.store.list_codes())
        storage_ok = True
    except StorageFailure:
        games = None
        storage_ok = False
    return {
        "ok": storage_ok,
        "service": settings.APP_NAME,
        "store_backend": settings.STORE_BACKEND,
        "games": games,
    }
