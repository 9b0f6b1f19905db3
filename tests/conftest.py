"""
Pytest configuration and shared fixtures for the test suite.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from model_selector.config import CollaborationConfig, SelectorConfig, TrackingConfig
from model_selector.ledger.escalations import EscalationLedger
from model_selector.models.llm import LLMResponse
from model_selector.routing.router import SessionRouter
from model_selector.sessions.store import SessionStore


# ============================================================================
# Mock LLM Client
# ============================================================================

@pytest.fixture
def mock_llm_response():
    """Factory for creating mock LLM responses."""
    def _create(content: str, model: str = "test-model", input_tokens: int = 100, output_tokens: int = 5):
        return LLMResponse(
            content=content,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
    return _create


@pytest.fixture
def mock_llm_client(mock_llm_response):
    """Create a mock LLM client that returns configurable responses."""
    client = MagicMock()
    client.complete = AsyncMock(return_value=mock_llm_response("simple"))
    return client


# ============================================================================
# Config Fixtures
# ============================================================================

@pytest.fixture
def config():
    """Default selector configuration."""
    return SelectorConfig()


@pytest.fixture
def collab_config():
    """Configuration with collaboration enabled for every session."""
    return SelectorConfig(collaboration=CollaborationConfig(enabled=True))


@pytest.fixture
def fallback_config():
    """A coding category with a three-model fallback chain."""
    return SelectorConfig(
        models={
            "simple": ["flash"],
            "coding": ["opus", "sonnet", "flash"],
        },
    )


@pytest.fixture
def file_ledger_config(tmp_path):
    """Configuration whose ledger lives in a temp directory."""
    return SelectorConfig(
        tracking=TrackingConfig(ledger_path=str(tmp_path / "escalations.json")),
    )


# ============================================================================
# Router Fixtures
# ============================================================================

@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def ledger():
    """In-memory escalation ledger."""
    return EscalationLedger()


@pytest.fixture
def mock_tracker():
    """Work tracker that opens work item W-1."""
    tracker = MagicMock()
    tracker.open_work = AsyncMock(return_value="W-1")
    return tracker


@pytest.fixture
def router(config, store, ledger):
    return SessionRouter(config, store=store, ledger=ledger)


@pytest.fixture
def tracked_router(config, store, ledger, mock_tracker):
    return SessionRouter(config, store=store, ledger=ledger, tracker=mock_tracker)


# ============================================================================
# Message Fixtures
# ============================================================================

@pytest.fixture
def make_message():
    """Factory for chat messages."""
    def _create(content: str, role: str = "user", name: str = None):
        message = {"role": role, "content": content}
        if name:
            message["name"] = name
        return message
    return _create

