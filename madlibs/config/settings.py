"""
Application settings
====================

Role
----
- Centralise the service parameters (name, host/port, storage, game limits,
  polling cadence, admin passphrase).
- Defaults suit a local dev environment.
- Every value can be overridden through `.env` or the environment.

Integrations
------------
- `pydantic-settings` loads environment variables and `.env` automatically.
- Services and routers import `from madlibs.config.settings import settings`.

Good practice
-------------
- Do *not* commit a real `ADMIN_PASSWORD`. It is a party gate, not a
  security boundary, but keep it out of the repo anyway.
- `DATA_DIR` defaults to `<repo>/madlibs/data`; game documents live in
  `<DATA_DIR>/games/`.

`.env` example
--------------
APP_NAME="Mad Libs Party (Staging)"
PORT=8080
STORE_BACKEND="file"
DATA_DIR="/var/opt/madlibs/data"
ADMIN_PASSWORD="pick-something-fun"
MAX_PLAYERS=40
POLL_INTERVAL_SECONDS=2
"""
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
import os


class Settings(BaseSettings):
    # Service name (shown by /health)
    APP_NAME: str = "Mad Libs Party"
    # Network bind (FastAPI / Uvicorn)
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Persistence: "file" (JSON documents under DATA_DIR) or "memory" (process local)
    STORE_BACKEND: Literal["file", "memory"] = "file"
    DATA_DIR: str = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")

    # Game rules
    MAX_PLAYERS: int = 40
    # Observers re-read the game document at this cadence
    POLL_INTERVAL_SECONDS: float = 2.0
    # Read-modify-write cycles re-applied after a version mismatch
    MERGE_ATTEMPTS: int = 3

    # Admin gate (static passphrase, session valid for ADMIN_SESSION_TTL_HOURS)
    ADMIN_PASSWORD: str = "changeme-party-host"
    ADMIN_SESSION_TTL_HOURS: int = 24

    # Developer helpers (fake players, simulated submissions)
    DEV_TOOLS_ENABLED: bool = False

    LOG_LEVEL: str = "INFO"

    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


# Single importable instance: `settings`
settings = Settings()
