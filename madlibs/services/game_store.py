"""
Service: game_store.py
Role:
- Key-value persistence of Game documents by code: save / load / delete / list.
- Documents are JSON (orjson) stored under the namespaced key `game:<code>`.

Backends:
- `MemoryBackend`: process-local dict, shared by every service of the process
  (tests, single-process deployments).
- `FileBackend`: one JSON file per key under `<DATA_DIR>/games/`.

Concurrency:
- `save(game, expected_version=...)` compares the stored `version` with the
  one the caller read and raises `VersionConflict` on mismatch. The
  check-and-write runs under the backend lock, so it is atomic inside one
  process. Across processes sharing the file backend the window is narrowed,
  not closed (no file lock): last write wins in that case.
- `update(code, mutate)` re-reads, applies `mutate` and saves with the version
  check, re-applying on conflict up to `MERGE_ATTEMPTS` times under a
  per-code lock.

Errors:
- Any backend exception becomes `StorageFailure`; so does an undecodable or
  invalid document.
"""
from __future__ import annotations

import logging
from pathlib import Path
from threading import RLock
from typing import Callable, Dict, List, Optional, Protocol

import orjson
from pydantic import ValidationError as PydanticValidationError

from madlibs.config.settings import settings
from madlibs.models.game import Game
from madlibs.utils.codes import normalize_code
from .errors import ConcurrentUpdate, NotFound, StorageFailure, VersionConflict
from .io_utils import dumps, loads, read_bytes, write_bytes

logger = logging.getLogger(__name__)

KEY_PREFIX = "game:"


class KeyValueBackend(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...

    def put(self, key: str, raw: bytes) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> List[str]: ...

    def lock(self) -> RLock: ...


class MemoryBackend:
    """In-process key-value store."""

    def __init__(self) -> None:
        self._data: Dict[str, bytes] = {}
        self._lock = RLock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, raw: bytes) -> None:
        with self._lock:
            self._data[key] = raw

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data.keys())

    def lock(self) -> RLock:
        return self._lock

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class FileBackend:
    """One JSON file per key (`game:ABC123` -> `game__ABC123.json`)."""

    SUFFIX = ".json"

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self._lock = RLock()

    def _path(self, key: str) -> Path:
        return self.root / (key.replace(":", "__") + self.SUFFIX)

    def get(self, key: str) -> Optional[bytes]:
        return read_bytes(self._path(key))

    def put(self, key: str, raw: bytes) -> None:
        write_bytes(self._path(key), raw)

    def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def keys(self) -> List[str]:
        if not self.root.exists():
            return []
        return [
            p.name[: -len(self.SUFFIX)].replace("__", ":")
            for p in self.root.iterdir()
            if p.is_file() and p.name.endswith(self.SUFFIX)
        ]

    def lock(self) -> RLock:
        return self._lock


class GameStore:
    def __init__(self, backend: KeyValueBackend, prefix: str = KEY_PREFIX) -> None:
        self.backend = backend
        self.prefix = prefix
        self._code_locks: Dict[str, RLock] = {}
        self._registry_lock = RLock()

    def _key(self, code: str) -> str:
        return f"{self.prefix}{normalize_code(code)}"

    def _read_raw(self, code: str) -> Optional[bytes]:
        try:
            return self.backend.get(self._key(code))
        except Exception as exc:
            logger.error("Game read failed", exc_info=True, extra={"game_code": code})
            raise StorageFailure(f"Could not read game {code}") from exc

    def load(self, code: str) -> Optional[Game]:
        """Game document for `code`, or None when nothing is stored."""
        raw = self._read_raw(code)
        if raw is None:
            return None
        try:
            return Game.model_validate(loads(raw))
        except (orjson.JSONDecodeError, PydanticValidationError) as exc:
            logger.error("Corrupt game document", extra={"game_code": code})
            raise StorageFailure(f"Stored game {code} is not a valid document") from exc

    def _stored_version(self, code: str) -> Optional[int]:
        raw = self._read_raw(code)
        if raw is None:
            return None
        try:
            return int(loads(raw).get("version", 0))
        except (orjson.JSONDecodeError, AttributeError, TypeError, ValueError) as exc:
            raise StorageFailure(f"Stored game {code} is not a valid document") from exc

    def save(self, game: Game, expected_version: Optional[int] = None) -> Game:
        """
        Persist `game` and return the stored copy (with its bumped `version`).
        - `expected_version=None`: unconditional write (creation, overwrite).
        - otherwise the stored version must still equal `expected_version`.
        """
        code = normalize_code(game.code)
        with self.backend.lock():
            current = self._stored_version(code)
            if expected_version is not None:
                if current is None:
                    raise NotFound(f"Game {code} no longer exists")
                if current != expected_version:
                    logger.info(
                        "Version conflict on save",
                        extra={"game_code": code, "expected": expected_version, "actual": current},
                    )
                    raise VersionConflict(code, expected_version, current)
            base = current if current is not None else game.version
            stored = game.model_copy(update={"code": code, "version": base + 1})
            try:
                self.backend.put(self._key(code), dumps(stored.to_document()))
            except Exception as exc:
                logger.error("Game write failed", exc_info=True, extra={"game_code": code})
                raise StorageFailure(f"Could not save game {code}") from exc
        logger.debug("Game saved", extra={"game_code": code, "version": stored.version})
        return stored

    def delete(self, code: str) -> bool:
        """Remove the document; returns False when nothing was stored."""
        key = self._key(code)
        try:
            with self.backend.lock():
                existed = self.backend.get(key) is not None
                self.backend.remove(key)
        except Exception as exc:
            logger.error("Game delete failed", exc_info=True, extra={"game_code": code})
            raise StorageFailure(f"Could not delete game {code}") from exc
        return existed

    def list_codes(self) -> List[str]:
        try:
            keys = self.backend.keys()
        except Exception as exc:
            logger.error("Game listing failed", exc_info=True)
            raise StorageFailure("Could not list games") from exc
        return sorted(k[len(self.prefix):] for k in keys if k.startswith(self.prefix))

    # -----------------------------
    # Read-modify-write
    # -----------------------------
    def code_lock(self, code: str) -> RLock:
        """Process-local lock serializing read-modify-write cycles on one game."""
        key = normalize_code(code)
        with self._registry_lock:
            return self._code_locks.setdefault(key, RLock())

    def update(
        self,
        code: str,
        mutate: Callable[[Game], Game],
        attempts: Optional[int] = None,
    ) -> Game:
        """
        Re-read the authoritative document, apply `mutate` and save it back with
        the version check. On a version mismatch the fresh document is re-read
        and `mutate` re-applied, at most `attempts` times.
        `mutate` must be a pure function of the document it receives. When it
        returns the document unchanged nothing is written (the version stays).
        """
        tries = max(1, settings.MERGE_ATTEMPTS if attempts is None else attempts)
        with self.code_lock(code):
            for attempt in range(1, tries + 1):
                current = self.load(code)
                if current is None:
                    raise NotFound(f"Game {normalize_code(code)} not found. Check your code!")
                updated = mutate(current)
                if updated == current:
                    return current
                try:
                    return self.save(updated, expected_version=current.version)
                except VersionConflict:
                    logger.warning(
                        "Concurrent write detected, merging",
                        extra={"game_code": code, "attempt": attempt},
                    )
        raise ConcurrentUpdate(
            f"Game {normalize_code(code)} kept changing while saving, please try again",
            details={"attempts": tries},
        )


def build_store() -> GameStore:
    """Store configured by `settings.STORE_BACKEND`."""
    if settings.STORE_BACKEND == "memory":
        return GameStore(MemoryBackend())
    return GameStore(FileBackend(Path(settings.DATA_DIR) / "games"))
