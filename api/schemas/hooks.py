"""Hook API schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from model_selector.models.routing import RoutingDirective, SessionState


class TurnStartRequest(BaseModel):
    """Turn about to start."""
    session_key: Optional[str] = None
    messages: list[dict[str, Any]] = Field(default_factory=list)
    prompt: Optional[str] = None


class TurnStartResponse(BaseModel):
    """Context to prepend; both fields are null when nothing changes."""
    prepend_context: Optional[str] = None
    directive: Optional[RoutingDirective] = None


class ToolCallRequest(BaseModel):
    """Tool call observed after it ran."""
    session_key: Optional[str] = None
    tool_name: str
    params: Any = None
    result: Any = None
    error: Any = None


class ToolCallResponse(BaseModel):
    """Fallback directive, armed revert, or the original error to surface."""
    directive: Optional[RoutingDirective] = None
    prepend_context: Optional[str] = None
    error: Any = None
    revert_armed: bool = False


class SessionEndRequest(BaseModel):
    session_key: Optional[str] = None


class SessionStateResponse(BaseModel):
    state: SessionState
    escalations: list[dict[str, Any]] = Field(default_factory=list)
