"""
Service: polling.py
Role:
- Pull-based synchronisation of one observer (author dashboard, player
  screen) with the stored game document.
- Every `interval` seconds the document is re-read and, when found, replaces
  the cached `snapshot` wholesale (no merge: last read wins for display).

Behaviour:
- Read-only: polling never writes to the store.
- A missing document (deleted game) is "no update this tick".
- `StorageFailure` is logged and swallowed: polling is a best-effort refresh.
- An `on_change` callback that raises is logged; the loop keeps ticking.
- `clock` and `sleep` are injectable so tests drive several observers with a
  fake clock instead of real timers.

API:
- tick() / poll_if_due(): one synchronous read (the second only when due).
- run() performs each tick in a worker thread, off the event loop.
- start() / stop(): background asyncio task running `run()`.
- retarget(code): switch game; the previous code stops being polled.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from madlibs.config.settings import settings
from madlibs.models.game import Game
from madlibs.utils.codes import normalize_code
from .errors import StorageFailure
from .game_store import GameStore

logger = logging.getLogger(__name__)


class PollingSync:
    def __init__(
        self,
        store: GameStore,
        code: str,
        interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_change: Optional[Callable[[Game], None]] = None,
    ) -> None:
        self.store = store
        self.code = normalize_code(code)
        self.interval = settings.POLL_INTERVAL_SECONDS if interval is None else interval
        self.clock = clock
        self.sleep = sleep
        self.on_change = on_change
        self.snapshot: Optional[Game] = None
        self.last_tick_at: Optional[float] = None
        self.failures = 0
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    # === synchronous polling ===
    def tick(self) -> bool:
        """Re-read the document once. Returns True when the snapshot changed."""
        self.last_tick_at = self.clock()
        code = self.code
        try:
            game = self.store.load(code)
        except StorageFailure:
            self.failures += 1
            logger.warning("Polling read failed", exc_info=True, extra={"game_code": code})
            return False
        if code != self.code:
            # retargeted while reading
            return False
        if game is None:
            logger.debug("Polled game not found", extra={"game_code": self.code})
            return False
        changed = game != self.snapshot
        self.snapshot = game
        if changed and self.on_change is not None:
            try:
                self.on_change(game)
            except Exception:
                self.failures += 1
                logger.exception("Polling observer callback failed", extra={"game_code": self.code})
        return changed

    def is_due(self) -> bool:
        if self.last_tick_at is None:
            return True
        return self.clock() - self.last_tick_at >= self.interval

    def poll_if_due(self) -> bool:
        """Tick only when `interval` has elapsed since the last one."""
        if not self.is_due():
            return False
        return self.tick()

    # === background loop ===
    @property
    def running(self) -> bool:
        return bool(self._task and not self._task.done())

    async def run(self, max_ticks: Optional[int] = None) -> None:
        """Tick every `interval` until stopped (or after `max_ticks` ticks)."""
        self._stopped = False
        ticks = 0
        while not self._stopped:
            await asyncio.to_thread(self.tick)
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            await self.sleep(self.interval)

    def start(self) -> asyncio.Task:
        """Spawn the polling task (must be called from a running event loop)."""
        if self.running:
            return self._task
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Cancel the polling task if needed."""
        self._stopped = True
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

    async def retarget(self, code: str) -> None:
        """Follow another game: polling of the previous code stops, the cache is dropped."""
        was_running = self.running
        await self.stop()
        self.code = normalize_code(code)
        self.snapshot = None
        self.last_tick_at = None
        if was_running:
            self.start()
