"""Mini README: Server-side registry of login session tokens.

Structure:
    * Session - token, owner and validity window.
    * SessionRegistry - issues, resolves and revokes tokens.

Tokens are opaque random strings; only the registry can tell whether one is
valid, so a token copied after logout or expiry is useless.
"""

from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from ..logging_utils import get_logger

LOGGER = get_logger(__name__)


def utc_now() -> datetime:
    """Timezone-aware current time; the default clock."""

    return datetime.now(timezone.utc)


@dataclass(slots=True, frozen=True)
class Session:
    """A login session bound to a single user."""

    token: str
    user_id: int
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Whether the session has reached its expiry time at ``now``."""

        return now >= self.expires_at


class SessionRegistry:
    """Track live session tokens in memory."""

    def __init__(
        self,
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def issue(self, user_id: int) -> Session:
        """Create and remember a new token for ``user_id``."""

        now = self._clock()
        session = Session(
            token=secrets.token_hex(32),
            user_id=user_id,
            issued_at=now,
            expires_at=now + self._ttl,
        )
        with self._lock:
            self._sweep(now)
            self._sessions[session.token] = session
        LOGGER.debug("Issued session for user %s", user_id)
        return session

    def resolve(self, token: str) -> Optional[Session]:
        """Return the live session for ``token`` or ``None``, evicting expired ones."""

        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if session.is_expired(self._clock()):
                del self._sessions[token]
                LOGGER.debug("Evicted expired session for user %s", session.user_id)
                return None
            return session

    def _sweep(self, now: datetime) -> None:
        """Drop expired sessions; callers hold the lock."""

        live = {token: s for token, s in self._sessions.items() if not s.is_expired(now)}
        evicted = len(self._sessions) - len(live)
        if evicted:
            self._sessions = live
            LOGGER.debug("Swept %s expired sessions", evicted)

    def revoke(self, token: str) -> bool:
        """Forget ``token``; returns whether it was live."""

        with self._lock:
            return self._sessions.pop(token, None) is not None

    def __len__(self) -> int:
        """Number of sessions currently held, live or not yet swept."""

        with self._lock:
            return len(self._sessions)
