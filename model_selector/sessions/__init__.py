"""Per-session routing state storage."""

from model_selector.sessions.store import SessionStore

__all__ = ["SessionStore"]
