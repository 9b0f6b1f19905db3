"""
Shared Protocol definitions for the router's external collaborators.

The router never talks to an LLM API, the escalation ledger file or an
issue tracker directly; it goes through these interfaces so each can be
injected (and faked in tests).
"""

from typing import Optional, Protocol

from model_selector.models.llm import LLMResponse
from model_selector.models.routing import EscalationEntry


class LLMClientProtocol(Protocol):
    """Interface for the client used by the semantic classifier."""

    async def complete(
        self,
        model: str,
        messages: list[dict],
        temperature: float,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """
        Complete a chat conversation with the LLM.

        Args:
            model: Model identifier (e.g., "google/gemini-2.0-flash-001")
            messages: List of message dicts with "role" and "content"
            temperature: Sampling temperature (0-1)
            max_tokens: Optional maximum tokens to generate

        Returns:
            LLMResponse with content and token usage
        """
        ...


class EscalationLedgerProtocol(Protocol):
    """Durable work_id -> escalation mapping shared across sessions."""

    def record(self, entry: EscalationEntry) -> None:
        """Insert or supersede the entry for entry.work_id."""
        ...

    def get(self, work_id: str) -> Optional[EscalationEntry]:
        ...

    def remove(self, work_id: str) -> Optional[EscalationEntry]:
        """Remove and return the entry, None if absent."""
        ...

    def for_session(self, session_key: str) -> list[EscalationEntry]:
        """Entries recorded by one session."""
        ...


class WorkTrackerProtocol(Protocol):
    """External issue tracker that holds the unit of work for an escalation."""

    async def open_work(self, title: str, description: str = "") -> Optional[str]:
        """Create a work item and return its id, None on failure."""
        ...
