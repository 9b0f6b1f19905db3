"""Data models for the model selector."""

from model_selector.models.enums import ClassificationSource, DirectiveKind
from model_selector.models.llm import LLMResponse
from model_selector.models.routing import (
    Classification,
    EscalationEntry,
    RoutingDirective,
    SessionState,
    ToolCallOutcome,
    TurnStartResult,
)

__all__ = [
    "Classification",
    "ClassificationSource",
    "DirectiveKind",
    "EscalationEntry",
    "LLMResponse",
    "RoutingDirective",
    "SessionState",
    "ToolCallOutcome",
    "TurnStartResult",
]
