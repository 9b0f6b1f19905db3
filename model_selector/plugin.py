"""
Model Selector Plugin - hook boundary between the host runtime and the router.

The host calls three hooks: turn start (may return context to prepend),
tool call observed, and session end. A routing problem must never take the
host down, so every hook catches its own exceptions, logs them and returns
"no directive".
"""

import logging
from typing import Any, Iterable, Optional

from model_selector.config import SelectorConfig
from model_selector.formatting import format_directive
from model_selector.ledger.escalations import EscalationLedger
from model_selector.llm.client import LLMClient
from model_selector.models.routing import ToolCallOutcome, TurnStartResult
from model_selector.routing.classifier import TaskClassifier
from model_selector.routing.collaboration import message_text
from model_selector.routing.router import SessionRouter
from model_selector.sessions.store import SessionStore
from model_selector.tracking.todoist import TodoistTracker
from model_selector.utils.protocols import (
    EscalationLedgerProtocol,
    LLMClientProtocol,
    WorkTrackerProtocol,
)


logger = logging.getLogger(__name__)


UNKNOWN_SESSION = "unknown"


def extract_user_text(messages: Optional[Iterable[Any]], prompt: Optional[str] = None) -> str:
    """Text of the latest user message, falling back to the raw prompt."""
    if messages:
        for message in reversed(list(messages)):
            role = message.get("role") if isinstance(message, dict) else getattr(message, "role", None)
            if role == "user":
                return message_text(message)
    return prompt or ""


class ModelSelectorPlugin:
    """
    Wires configuration, router and collaborators behind the host hooks.

    Usage:
        plugin = ModelSelectorPlugin.from_config(load_config())
        result = await plugin.on_turn_start(session_key, messages, prompt)
        if result:
            context = result.prepend_context + "\\n\\n" + context
    """

    PLUGIN_ID = "model-selector"

    def __init__(
        self,
        config: Optional[SelectorConfig] = None,
        router: Optional[SessionRouter] = None,
        llm_client: Optional[LLMClientProtocol] = None,
        ledger: Optional[EscalationLedgerProtocol] = None,
        tracker: Optional[WorkTrackerProtocol] = None,
    ):
        self.config = config or SelectorConfig()
        self.router = router or SessionRouter(
            self.config,
            store=SessionStore(),
            ledger=ledger,
            classifier=TaskClassifier(self.config, llm_client=llm_client),
            tracker=tracker,
        )

        if self.config.enabled:
            logger.info(f"[{self.PLUGIN_ID}] Registered (categories: {', '.join(self.config.categories)})")
        else:
            logger.info(f"[{self.PLUGIN_ID}] Disabled via config")

    @classmethod
    def from_config(cls, config: SelectorConfig) -> "ModelSelectorPlugin":
        """
        Build the plugin with the collaborators the configuration asks for.

        Optional collaborators that cannot be built (missing API keys) are
        left out with a warning; the router works without them.
        """
        ledger = EscalationLedger(config.tracking.ledger_path)

        llm_client = None
        if config.semantic.enabled:
            try:
                llm_client = LLMClient()
            except ValueError as e:
                logger.warning(f"Semantic classification disabled: {e}")

        tracker = None
        if config.tracking.todoist_enabled:
            try:
                tracker = TodoistTracker(project_id=config.tracking.todoist_project_id)
            except ValueError as e:
                logger.warning(f"Todoist tracking disabled: {e}")

        return cls(config, llm_client=llm_client, ledger=ledger, tracker=tracker)

    async def on_turn_start(
        self,
        session_key: Optional[str],
        messages: Optional[list[Any]] = None,
        prompt: Optional[str] = None,
    ) -> Optional[TurnStartResult]:
        """
        Turn-start hook.

        Returns:
            Context to prepend for this turn, or None when nothing changes
        """
        if not self.config.enabled:
            return None

        key = session_key or UNKNOWN_SESSION
        try:
            text = extract_user_text(messages, prompt)
            directive = await self.router.route_turn(key, text, messages or [])
            context = format_directive(directive, self.config)
            if context is None:
                return None
            return TurnStartResult(prepend_context=context, directive=directive)
        except Exception:
            logger.exception(f"[{self.PLUGIN_ID}] Turn-start hook failed for session {key}")
            return None

    async def on_tool_call(
        self,
        session_key: Optional[str],
        tool_name: str,
        params: Any = None,
        result: Any = None,
        error: Any = None,
    ) -> Optional[ToolCallOutcome]:
        """
        Tool-call-observed hook.

        Returns:
            The outcome (fallback directive, armed revert or the original
            error to surface), or None if the hook itself failed
        """
        if not self.config.enabled:
            return None

        key = session_key or UNKNOWN_SESSION
        try:
            outcome = await self.router.observe_tool_call(key, tool_name, params, result, error)
            if outcome.directive is not None:
                outcome.prepend_context = format_directive(outcome.directive, self.config)
            return outcome
        except Exception:
            logger.exception(f"[{self.PLUGIN_ID}] Tool-call hook failed for session {key} ({tool_name})")
            return None

    async def on_session_end(self, session_key: Optional[str]) -> None:
        """Session-end hook: release the session's routing state."""
        if not self.config.enabled:
            return

        key = session_key or UNKNOWN_SESSION
        try:
            await self.router.end_session(key)
        except Exception:
            logger.exception(f"[{self.PLUGIN_ID}] Session-end hook failed for session {key}")
