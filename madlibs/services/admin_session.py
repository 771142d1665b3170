"""
Service: admin_session.py
Role:
- The host's admin gate: a static shared passphrase, and on success an
  explicit session object `{authenticated, issued_at}` valid for 24 hours.
- Expiry is computed when the session is read; expired sessions are dropped
  on access.

Warning:
- Not a security boundary. The passphrase only keeps party guests out of the
  host screens.
"""
from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from threading import RLock
from typing import Callable, Dict, Optional
from uuid import uuid4

from madlibs.config.settings import settings
from madlibs.models.game import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdminSession:
    authenticated: bool
    issued_at: datetime

    def expires_at(self, ttl: timedelta) -> datetime:
        return self.issued_at + ttl

    def is_valid(self, now: datetime, ttl: timedelta) -> bool:
        return self.authenticated and now - self.issued_at < ttl


def check_password(candidate: Optional[str], expected: Optional[str] = None) -> bool:
    secret = settings.ADMIN_PASSWORD if expected is None else expected
    return hmac.compare_digest((candidate or "").encode("utf-8"), secret.encode("utf-8"))


@dataclass
class AdminSessionRegistry:
    ttl: timedelta = field(default_factory=lambda: timedelta(hours=settings.ADMIN_SESSION_TTL_HOURS))
    clock: Callable[[], datetime] = utcnow
    _lock: RLock = field(default_factory=RLock, init=False, repr=False)
    _sessions: Dict[str, AdminSession] = field(default_factory=dict, init=False, repr=False)

    def login(self, password: Optional[str]) -> Optional[str]:
        """Session id on a correct passphrase, None otherwise."""
        if not check_password(password):
            logger.info("Admin login rejected")
            return None
        sid = uuid4().hex
        with self._lock:
            self._sessions[sid] = AdminSession(authenticated=True, issued_at=self.clock())
        logger.info("Admin session opened")
        return sid

    def get(self, sid: Optional[str]) -> Optional[AdminSession]:
        """Valid session for `sid`; expired ones are removed and reported as None."""
        if not sid:
            return None
        with self._lock:
            session = self._sessions.get(sid)
            if session is None:
                return None
            if not session.is_valid(self.clock(), self.ttl):
                self._sessions.pop(sid, None)
                return None
            return session

    def logout(self, sid: Optional[str]) -> None:
        if not sid:
            return
        with self._lock:
            self._sessions.pop(sid, None)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()


ADMIN_SESSIONS = AdminSessionRegistry()
