"""
In-memory registry of live training sessions for the dev server.

Sessions live only as long as the process; there is no persistence.
The registry holds at most ``max_sessions`` sessions: adding one more
evicts the oldest, closing it and its provider. Single-process async
usage only (no locks needed since asyncio is single-threaded within the
event loop).
"""

from __future__ import annotations

import logging
from typing import Optional

from cnv_trainer.services.session_machine import TrainingSession

logger = logging.getLogger("cnv_trainer")


class SessionRegistry:
    """Maps session_id → TrainingSession, oldest first.

    Args:
        max_sessions: Capacity before the oldest session is evicted.
    """

    def __init__(self, max_sessions: int = 100) -> None:
        self._sessions: dict[str, TrainingSession] = {}
        self._max_sessions = max(1, max_sessions)

    async def add(self, session: TrainingSession) -> str:
        """Register a session under its own session_id, evicting if full."""
        while len(self._sessions) >= self._max_sessions:
            oldest_id = next(iter(self._sessions))
            oldest = self._sessions.pop(oldest_id)
            await oldest.aclose()
            logger.info(
                "SessionRegistry: oldest session evicted",
                extra={"step": "registry_evict", "session_id": oldest_id},
            )

        self._sessions[session.session_id] = session
        logger.info(
            "SessionRegistry: session registered",
            extra={"step": "registry_add", "session_id": session.session_id},
        )
        return session.session_id

    def get(self, session_id: str) -> Optional[TrainingSession]:
        """Return the session, or None if unknown."""
        return self._sessions.get(session_id)

    async def remove(self, session_id: str) -> bool:
        """Close and forget a session. Returns False if it was unknown."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.aclose()
        logger.info(
            "SessionRegistry: session removed",
            extra={"step": "registry_remove", "session_id": session_id},
        )
        return True

    async def clear(self) -> None:
        """Close and forget every session. For shutdown and testing."""
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            await session.aclose()

    @property
    def session_count(self) -> int:
        return len(self._sessions)
