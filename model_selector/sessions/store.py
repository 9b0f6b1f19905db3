"""
Session State Store - create-on-first-use, destroy-on-session-end.

Many sessions are handled concurrently, so the key -> state mapping is
guarded by a lock. The state object itself belongs to whichever turn is
running for that key; the host never runs two turns of one session at once.
"""

import logging
import threading
from typing import Optional

from model_selector.models.routing import SessionState


logger = logging.getLogger(__name__)


class SessionStore:
    """Thread-safe mapping of session key to SessionState."""

    def __init__(self):
        self._states: dict[str, SessionState] = {}
        self._lock = threading.Lock()

    def get_or_create(self, session_key: str) -> SessionState:
        with self._lock:
            state = self._states.get(session_key)
            if state is None:
                state = SessionState(session_key=session_key)
                self._states[session_key] = state
                logger.debug(f"Created routing state for session {session_key}")
            return state

    def get(self, session_key: str) -> Optional[SessionState]:
        with self._lock:
            return self._states.get(session_key)

    def discard(self, session_key: str) -> bool:
        """
        Release a session's state.

        Returns:
            True if the session existed
        """
        with self._lock:
            removed = self._states.pop(session_key, None)
        if removed is not None:
            logger.debug(f"Released routing state for session {session_key}")
        return removed is not None

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._states.keys())

    def __contains__(self, session_key: str) -> bool:
        with self._lock:
            return session_key in self._states

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)
