"""
Errors raised by the game services.

Every error carries a short machine slug (`code`, returned to clients as
`error`) and the HTTP status used by the exception handler in `main.py`.
Routes never catch them: they surface as a JSON body
`{"ok": false, "error": <code>, "detail": <message>}`.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class GameError(Exception):
    code = "game_error"
    status_code = 400

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"ok": False, "error": self.code, "detail": self.message}
        if self.details:
            payload.update(self.details)
        return payload


class ValidationError(GameError):
    """Missing title/story/blanks before save, unanswered blanks before submit."""
    code = "validation_error"
    status_code = 422


class NotFound(GameError):
    code = "not_found"
    status_code = 404


class GameNotActive(GameError):
    code = "game_not_active"
    status_code = 409


class GameFull(GameError):
    code = "game_full"
    status_code = 409


class AlreadySubmitted(GameError):
    code = "already_submitted"
    status_code = 409


class InvalidTransition(GameError):
    """Lifecycle transition not allowed from the current status."""
    code = "invalid_transition"
    status_code = 409


class VersionConflict(GameError):
    """The stored document changed since it was read."""
    code = "version_conflict"
    status_code = 409

    def __init__(self, code: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Game {code} changed concurrently (expected version {expected}, found {actual})",
            details={"expected_version": expected, "actual_version": actual},
        )


class ConcurrentUpdate(GameError):
    """Merge attempts exhausted after repeated version conflicts."""
    code = "concurrent_update"
    status_code = 409


class StorageFailure(GameError):
    code = "storage_failure"
    status_code = 503
