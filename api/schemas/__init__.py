"""API schema modules."""

from api.schemas.hooks import (
    SessionEndRequest,
    SessionStateResponse,
    ToolCallRequest,
    ToolCallResponse,
    TurnStartRequest,
    TurnStartResponse,
)

__all__ = [
    "SessionEndRequest",
    "SessionStateResponse",
    "ToolCallRequest",
    "ToolCallResponse",
    "TurnStartRequest",
    "TurnStartResponse",
]
