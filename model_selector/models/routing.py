"""
Model Selector - Routing Schemas

Per-session routing state, the directives the router emits and the
escalation records shared through the ledger.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from model_selector.models.enums import ClassificationSource, DirectiveKind


class SessionState(BaseModel):
    """
    Routing state for one conversation session.

    Owned by the session store and mutated only by the SessionRouter.
    `current_model=None` means the session runs on the configured default.
    """

    session_key: str
    current_model: Optional[str] = Field(
        default=None,
        description="Model in effect, None for the configured default",
    )

    # Suggestion handshake (set together, cleared together)
    pending_approval: bool = False
    suggested_model: Optional[str] = None
    suggested_category: Optional[str] = None
    suggested_fallbacks: list[str] = Field(default_factory=list)
    suggested_task: Optional[str] = Field(
        default=None,
        description="Text that triggered the suggestion, used as the work item title",
    )

    # Escalation in effect
    active_category: Optional[str] = None
    active_work_id: Optional[str] = None

    # Completion observed, revert delivered on the next turn
    revert_armed: bool = False
    revert_work_id: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def effective_model(self, default_model: str) -> str:
        """Model actually in effect, resolving the default sentinel."""
        return self.current_model or default_model

    def is_on_default(self) -> bool:
        return self.current_model is None

    def set_suggestion(
        self,
        model: str,
        category: str,
        fallbacks: list[str],
        task: Optional[str] = None,
    ) -> None:
        self.pending_approval = True
        self.suggested_model = model
        self.suggested_category = category
        self.suggested_fallbacks = list(fallbacks)
        self.suggested_task = task
        self.touch()

    def clear_suggestion(self) -> None:
        self.pending_approval = False
        self.suggested_model = None
        self.suggested_category = None
        self.suggested_fallbacks = []
        self.suggested_task = None
        self.touch()

    def arm_revert(self, work_id: Optional[str] = None) -> None:
        self.revert_armed = True
        self.revert_work_id = work_id
        self.touch()

    def reset_to_default(self) -> None:
        """Drop the escalation and go back to the default model."""
        self.current_model = None
        self.active_category = None
        self.active_work_id = None
        self.revert_armed = False
        self.revert_work_id = None
        self.touch()

    def touch(self) -> None:
        self.updated_at = datetime.now()


class EscalationEntry(BaseModel):
    """An approved switch tied to an external unit of work."""

    work_id: str = Field(..., description="Issue / task identifier")
    model: str
    category: str
    session_key: str
    created_at: datetime = Field(default_factory=datetime.now)


class Classification(BaseModel):
    """Result of classifying a turn's text."""

    model_config = ConfigDict(use_enum_values=True)

    category: str
    source: ClassificationSource = ClassificationSource.DEFAULT
    matched_signal: Optional[str] = Field(
        default=None,
        description="Keyword that fired, for keyword classifications",
    )


class RoutingDirective(BaseModel):
    """What the router decided for a turn or an observed tool call."""

    model_config = ConfigDict(use_enum_values=True)

    kind: DirectiveKind = DirectiveKind.NOOP
    model: Optional[str] = None
    category: Optional[str] = None
    fallbacks: list[str] = Field(default_factory=list)
    work_id: Optional[str] = None
    peer_model: Optional[str] = None
    failed_tool: Optional[str] = None
    reason: str = ""

    @property
    def is_noop(self) -> bool:
        return self.kind == DirectiveKind.NOOP

    @classmethod
    def noop(cls, reason: str = "") -> "RoutingDirective":
        return cls(kind=DirectiveKind.NOOP, reason=reason)


class TurnStartResult(BaseModel):
    """Payload handed back to the host before the agent starts a turn."""

    prepend_context: str
    directive: RoutingDirective


class ToolCallOutcome(BaseModel):
    """
    Result of observing a tool call.

    `error` carries the original tool error, unchanged, when the router could
    not absorb it (fallback chain exhausted or not applicable).
    """

    directive: Optional[RoutingDirective] = None
    prepend_context: Optional[str] = None
    error: Any = None
    revert_armed: bool = False
    details: dict[str, Any] = Field(default_factory=dict)
