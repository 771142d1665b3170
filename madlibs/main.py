"""
FastAPI application: entry point
================================

Role
----
- Instantiate the FastAPI app and configure CORS for the front-end,
- Configure logging from `settings.LOG_LEVEL`,
- Translate domain errors (`GameError`) into JSON responses,
- Mount every router (REST only: observers poll, there is no push channel).

Notes
-----
- Router imports are explicit to avoid auto-discovery surprises.
- `dev` routes are mounted only when `DEV_TOOLS_ENABLED` is True.
- ⚠️ The CORS middleware must be added BEFORE include_router.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from madlibs.config.settings import settings
from madlibs.routes.auth import router as auth_router
from madlibs.routes.dev import router as dev_router
from madlibs.routes.games import router as games_router
from madlibs.routes.health import router as health_router
from madlibs.routes.play import router as play_router
from madlibs.routes.story import router as story_router
from madlibs.services.errors import GameError

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,          # admin session cookie
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError):
    """Every domain error becomes a dismissable notification payload for the UI."""
    logger.info(
        "Request rejected",
        extra={"path": request.url.path, "error": exc.code, "detail": exc.message},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


app.include_router(health_router)
app.include_router(auth_router)
app.include_router(story_router)
app.include_router(games_router)
app.include_router(play_router)

if settings.DEV_TOOLS_ENABLED:
    app.include_router(dev_router)


@app.get("/")
async def root():
    """Basic ping."""
    return {"ok": True, "service": "madlibs-party"}


@app.on_event("startup")
async def log_startup():
    logger.info(
        "Service started",
        extra={"store_backend": settings.STORE_BACKEND, "max_players": settings.MAX_PLAYERS},
    )
