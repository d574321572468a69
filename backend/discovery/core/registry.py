"""
Session Registry - In-memory live sessions, one slot per client.

Entries expire on the same window as persisted session records: a session
not touched for ``expiry_seconds`` is closed and dropped, so it can neither be
served nor resumed from memory after its stored record would be rejected.
"""

import logging
import time
from typing import Callable, Dict, Optional, Tuple

from .training import TrainingSession

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_SECONDS = 30 * 60


class SessionRegistry:
    """Created once per process; closed on shutdown."""

    def __init__(
        self,
        expiry_seconds: float = DEFAULT_EXPIRY_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.expiry_seconds = expiry_seconds
        self._clock = clock
        # client key -> (session, last touched)
        self._sessions: Dict[str, Tuple[TrainingSession, float]] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def _is_stale(self, touched_at: float, now: float) -> bool:
        return now - touched_at > self.expiry_seconds

    def get(self, client_key: str) -> Optional[TrainingSession]:
        """Live session for the client, or None if absent or stale."""
        entry = self._sessions.get(client_key)
        if entry is None:
            return None
        session, touched_at = entry
        if self._is_stale(touched_at, self._clock()):
            del self._sessions[client_key]
            session.close()
            logger.info(f"Live session expired for scenario {session.scenario.id}")
            return None
        return session

    def put(self, client_key: str, session: TrainingSession) -> TrainingSession:
        """Install ``session`` for the client, closing any session it replaces."""
        self.prune()
        previous = self._sessions.get(client_key)
        if previous is not None and previous[0] is not session:
            previous[0].close()
        self._sessions[client_key] = (session, self._clock())
        return session

    def touch(self, client_key: str) -> None:
        """Restart the expiry window after the session was saved."""
        entry = self._sessions.get(client_key)
        if entry is not None:
            self._sessions[client_key] = (entry[0], self._clock())

    def prune(self) -> int:
        """Close and drop every stale session. Returns how many were removed."""
        now = self._clock()
        stale = [key for key, (_, touched_at) in self._sessions.items() if self._is_stale(touched_at, now)]
        for key in stale:
            session, _ = self._sessions.pop(key)
            session.close()
        if stale:
            logger.info(f"Pruned {len(stale)} stale live session(s)")
        return len(stale)

    def discard(self, client_key: str) -> bool:
        entry = self._sessions.pop(client_key, None)
        if entry is None:
            return False
        entry[0].close()
        return True

    def close_all(self) -> None:
        for session, _ in self._sessions.values():
            session.close()
        if self._sessions:
            logger.info(f"Closed {len(self._sessions)} live session(s)")
        self._sessions.clear()
