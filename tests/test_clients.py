"""
Tests for the external clients (OpenRouter LLM, Todoist).

Uses mocked responses to test client logic without making real API calls.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
import httpx

from model_selector.llm.client import LLMClient, MockLLMClient
from model_selector.models.llm import LLMResponse
from model_selector.tracking.todoist import TodoistTracker


# =============================================================================
# LLM CLIENT
# =============================================================================


class TestMockLLMClient:
    """Tests for MockLLMClient."""

    @pytest.mark.asyncio
    async def test_mock_client_returns_response(self):
        """Test that mock client returns a valid response."""
        client = MockLLMClient()

        response = await client.complete(
            model="test/model",
            messages=[{"role": "user", "content": "Hello"}],
        )

        assert isinstance(response, LLMResponse)
        assert response.model == "test/model"
        assert "Mock response" in response.content

    @pytest.mark.asyncio
    async def test_mock_client_records_calls(self):
        """Test that mock client records all calls."""
        client = MockLLMClient(responses={"model-a": "coding"})

        response = await client.complete(
            model="model-a",
            messages=[{"role": "user", "content": "First"}],
            max_tokens=20,
        )

        assert response.content == "coding"
        assert client.calls[0]["max_tokens"] == 20


class TestLLMClient:
    """Tests for the OpenRouter client."""

    def test_requires_api_key(self, monkeypatch):
        """Test that a missing key is reported at construction."""
        monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
        with pytest.raises(ValueError):
            LLMClient()

    @pytest.mark.asyncio
    async def test_complete_parses_response(self):
        """Test that completions and usage are read from the SDK response."""
        client = LLMClient(api_key="test-key")

        sdk_response = MagicMock()
        sdk_response.choices = [MagicMock()]
        sdk_response.choices[0].message.content = "planning"
        sdk_response.choices[0].finish_reason = "stop"
        sdk_response.usage.prompt_tokens = 120
        sdk_response.usage.completion_tokens = 2
        client.client.chat.completions.create = AsyncMock(return_value=sdk_response)

        response = await client.complete(
            model="google/gemini-2.0-flash-001",
            messages=[{"role": "user", "content": "Plan the offsite"}],
            max_tokens=20,
        )

        assert response.content == "planning"
        assert response.input_tokens == 120
        kwargs = client.client.chat.completions.create.await_args.kwargs
        assert kwargs["max_tokens"] == 20
        assert kwargs["temperature"] == 0.0


# =============================================================================
# TODOIST TRACKER
# =============================================================================


def _mock_http(response=None, error=None):
    """Patchable AsyncClient whose post returns `response` or raises `error`."""
    mock_instance = AsyncMock()
    if error is not None:
        mock_instance.post = AsyncMock(side_effect=error)
    else:
        mock_instance.post = AsyncMock(return_value=response)
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    return mock_instance


class TestTodoistTracker:
    """Tests for TodoistTracker."""

    def test_requires_token(self, monkeypatch):
        monkeypatch.delenv("TODOIST_API_TOKEN", raising=False)
        with pytest.raises(ValueError):
            TodoistTracker()

    def test_token_from_env(self, monkeypatch):
        monkeypatch.setenv("TODOIST_API_TOKEN", "env-token")
        assert TodoistTracker().api_token == "env-token"

    @pytest.mark.asyncio
    async def test_open_work(self):
        """Test a created task's id is returned."""
        tracker = TodoistTracker(api_token="token", project_id="p1")

        mock_response = MagicMock()
        mock_response.json.return_value = {"id": "8675309", "content": "[coding] x"}
        mock_response.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _mock_http(response=mock_response)
            mock_client.return_value = mock_instance

            work_id = await tracker.open_work("[coding] x", "Escalated to opus")

        assert work_id == "8675309"
        call = mock_instance.post.await_args
        assert call.args[0].endswith("/tasks")
        assert call.kwargs["json"] == {
            "content": "[coding] x",
            "description": "Escalated to opus",
            "project_id": "p1",
        }
        assert call.kwargs["headers"] == {"Authorization": "Bearer token"}

    @pytest.mark.asyncio
    async def test_open_work_http_error(self):
        """Test transport errors degrade to None."""
        tracker = TodoistTracker(api_token="token")

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value = _mock_http(error=httpx.ConnectError("unreachable"))

            assert await tracker.open_work("title") is None

    @pytest.mark.asyncio
    async def test_open_work_status_error(self):
        """Test non-2xx responses degrade to None."""
        tracker = TodoistTracker(api_token="token")

        request = httpx.Request("POST", "https://api.todoist.com/rest/v2/tasks")
        mock_response = MagicMock()
        mock_response.raise_for_status = MagicMock(side_effect=httpx.HTTPStatusError(
            "403 Forbidden", request=request, response=httpx.Response(403, request=request),
        ))

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value = _mock_http(response=mock_response)

            assert await tracker.open_work("title") is None

    @pytest.mark.asyncio
    async def test_open_work_suppressed_error(self):
        """Test an error swallowed by the client context still yields None."""
        tracker = TodoistTracker(api_token="token")

        mock_instance = _mock_http(error=httpx.ReadTimeout("slow"))
        mock_instance.__aexit__ = AsyncMock(return_value=True)

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value = mock_instance

            assert await tracker.open_work("title") is None

    @pytest.mark.asyncio
    async def test_open_work_without_id(self):
        tracker = TodoistTracker(api_token="token")

        mock_response = MagicMock()
        mock_response.json.return_value = {}
        mock_response.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value = _mock_http(response=mock_response)

            assert await tracker.open_work("title") is None
