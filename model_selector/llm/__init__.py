"""LLM client used for semantic task classification."""

from model_selector.llm.client import LLMClient, MockLLMClient

__all__ = ["LLMClient", "MockLLMClient"]
