"""
Session Router - the per-session model routing state machine.

Per turn, the first matching rule decides:

1. A revert is armed (tracked work finished last turn) -> revert to the
   default model, unless the user asked to stay on the upgraded one.
2. Collaborative session with a peer announcement -> switch to the
   complement of the peer's model without asking.
3. Suggestion pending + override phrase -> drop the suggestion.
4. Suggestion pending + approval phrase -> switch to the suggested model.
5. Suggestion pending, neither phrase -> keep waiting.
6. Otherwise classify the text and maybe suggest an upgrade.

Tool calls observed after a turn can arm a revert (completion of tracked
work) or move the session down its category's model list (capacity
errors). The model cannot change mid-turn, so a revert is only delivered
on the following turn.
"""

import asyncio
import json
import logging
from typing import Any, Callable, Iterable, Optional

from model_selector.config import SelectorConfig
from model_selector.models.enums import DirectiveKind
from model_selector.models.routing import (
    EscalationEntry,
    RoutingDirective,
    SessionState,
    ToolCallOutcome,
)
from model_selector.routing.capacity import error_text, is_capacity_error
from model_selector.routing.classifier import TaskClassifier
from model_selector.routing.collaboration import (
    complement_of,
    find_peer_model,
    is_collaborative,
)
from model_selector.routing.signals import SIMPLE_CATEGORY
from model_selector.routing.triggers import TriggerMatcher
from model_selector.sessions.store import SessionStore
from model_selector.utils.protocols import (
    EscalationLedgerProtocol,
    WorkTrackerProtocol,
)


logger = logging.getLogger(__name__)


WORK_ID_LIST_KEYS = ("ids", "task_ids", "taskIds")
WORK_ID_KEYS = ("id", "task_id", "taskId")

UNCLASSIFIED_CATEGORY = "unclassified"


def extract_work_ids(arguments: Any) -> list[str]:
    """
    Pull unit-of-work ids out of a completion tool's arguments.

    Accepts list keys (ids, task_ids, taskIds; lists or comma separated
    strings), scalar keys (id, task_id, taskId) and a "tasks" list of objects.
    """
    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments)
        except json.JSONDecodeError:
            return []
    if not isinstance(arguments, dict):
        return []

    found: list[str] = []

    for key in WORK_ID_LIST_KEYS:
        value = arguments.get(key)
        if isinstance(value, str):
            found.extend(v.strip() for v in value.split(","))
        elif isinstance(value, (list, tuple)):
            found.extend(str(v) for v in value if v is not None)

    for key in WORK_ID_KEYS:
        value = arguments.get(key)
        if value is not None and not isinstance(value, (list, dict)):
            found.append(str(value))

    tasks = arguments.get("tasks")
    if isinstance(tasks, list):
        for task in tasks:
            if isinstance(task, dict):
                found.extend(extract_work_ids({k: task.get(k) for k in WORK_ID_KEYS}))

    unique = []
    for work_id in found:
        if work_id and work_id not in unique:
            unique.append(work_id)
    return unique


def extract_created_work_id(result: Any) -> Optional[str]:
    """Id of the work item a work-open tool created, from its result payload."""
    if isinstance(result, str):
        try:
            result = json.loads(result)
        except json.JSONDecodeError:
            return None

    if isinstance(result, list):
        return extract_created_work_id(result[0]) if result else None

    if isinstance(result, dict):
        for key in WORK_ID_KEYS:
            if result.get(key):
                return str(result[key])
        for key in ("task", "tasks", "result", "data"):
            if key in result:
                return extract_created_work_id(result[key])

    return None


class SessionRouter:
    """
    Routes each session between the default model and upgraded models.

    The router holds no global state: session states live in the injected
    SessionStore, escalations in the injected ledger.
    """

    def __init__(
        self,
        config: SelectorConfig,
        store: Optional[SessionStore] = None,
        ledger: Optional[EscalationLedgerProtocol] = None,
        classifier: Optional[TaskClassifier] = None,
        tracker: Optional[WorkTrackerProtocol] = None,
    ):
        """
        Args:
            config: Selector configuration
            store: Session state store (a fresh one if omitted)
            ledger: Escalation ledger; None disables tracked completion
            classifier: Task classifier (keyword-only if omitted)
            tracker: Issue tracker used to open a work item on approval
        """
        self.config = config
        self.store = store if store is not None else SessionStore()
        self.ledger = ledger
        self.classifier = classifier or TaskClassifier(config)
        self.tracker = tracker
        self.triggers = TriggerMatcher.from_config(config)

    # =========================================================================
    # TURN START
    # =========================================================================

    async def route_turn(
        self,
        session_key: str,
        user_text: str,
        messages: Iterable[Any] = (),
    ) -> RoutingDirective:
        """
        Decide what to do for the turn that is about to start.

        Args:
            session_key: Session identifier
            user_text: Latest user message text
            messages: Recent message history (oldest first), for collaboration

        Returns:
            The directive for this turn (NOOP when nothing changes)
        """
        state = self.store.get_or_create(session_key)
        text = user_text or ""

        if state.revert_armed:
            return await self._deliver_revert(state, text)

        if is_collaborative(
            session_key,
            self.config.collaboration.enabled,
            self.config.collaboration.channel_ids,
        ):
            directive = await self._collaboration_switch(state, messages)
            if directive is not None:
                return directive

        if state.pending_approval:
            # Override is checked first: "no switch, but go ahead" stays put
            if self.triggers.is_override(text):
                logger.info(f"[{session_key}] User override, staying on {self._model_of(state)}")
                state.clear_suggestion()
                return RoutingDirective.noop("override")

            if self.triggers.is_approval(text):
                return await self._approve(state)

            return RoutingDirective.noop("awaiting_approval")

        return await self._maybe_suggest(state, text)

    async def _deliver_revert(self, state: SessionState, text: str) -> RoutingDirective:
        await self._release_work(state)

        if self.triggers.is_stay(text):
            logger.info(f"[{state.session_key}] Work complete, user chose to stay on {self._model_of(state)}")
            state.revert_armed = False
            state.revert_work_id = None
            state.active_work_id = None
            state.touch()
            return RoutingDirective.noop("stay")

        previous = self._model_of(state)
        work_id = state.revert_work_id
        state.reset_to_default()

        logger.info(f"[{state.session_key}] Work complete, returning from {previous} to default")
        return RoutingDirective(
            kind=DirectiveKind.REVERT,
            model=self.config.default_model,
            work_id=work_id,
            reason=f"work complete on {previous}",
        )

    async def _collaboration_switch(
        self,
        state: SessionState,
        messages: Iterable[Any],
    ) -> Optional[RoutingDirective]:
        collab = self.config.collaboration
        peer_model = find_peer_model(
            messages,
            own_identity=collab.own_identity,
            marker=collab.marker,
            window=collab.window,
        )
        if not peer_model:
            return None

        complement = complement_of(
            peer_model,
            collab.complement_table,
            aliases=collab.aliases,
            family_a_markers=collab.family_a_markers,
            family_a_representative=collab.family_a_representative,
            family_b_representative=collab.family_b_representative,
        )
        if not complement or complement == self._model_of(state):
            return None

        logger.info(
            f"[{state.session_key}] Peer is on {peer_model}, auto-switching "
            f"{self._model_of(state)} -> {complement}"
        )
        if state.pending_approval:
            state.clear_suggestion()
        state.current_model = complement
        state.touch()
        await self._retarget_escalation(state)

        return RoutingDirective(
            kind=DirectiveKind.AUTO_SWITCH,
            model=complement,
            category=state.active_category,
            peer_model=peer_model,
            reason=f"complement of peer model {peer_model}",
        )

    async def _approve(self, state: SessionState) -> RoutingDirective:
        model = state.suggested_model
        category = state.suggested_category
        fallbacks = list(state.suggested_fallbacks)
        task = state.suggested_task

        logger.info(f"[{state.session_key}] Approval detected, switching to {model}")

        state.current_model = model
        state.active_category = category
        state.active_work_id = None
        state.clear_suggestion()

        work_id = await self._open_work(state, task)
        if work_id:
            state.active_work_id = work_id
            await self._ledger_call(
                "record",
                EscalationEntry(
                    work_id=work_id,
                    model=model,
                    category=category,
                    session_key=state.session_key,
                ),
            )

        return RoutingDirective(
            kind=DirectiveKind.SWITCH,
            model=model,
            category=category,
            fallbacks=fallbacks,
            work_id=work_id,
            reason="approved",
        )

    async def _maybe_suggest(self, state: SessionState, text: str) -> RoutingDirective:
        classification = await self.classifier.aclassify_detailed(text)
        category = classification.category
        models = self.config.models_for(category)

        if category == SIMPLE_CATEGORY or not models:
            return RoutingDirective.noop(category)

        primary = models[0]
        if primary == self._model_of(state):
            return RoutingDirective.noop("already_on_model")

        logger.info(
            f"[{state.session_key}] Task detected: {category} "
            f"({classification.source}:{classification.matched_signal}), suggesting {primary}"
        )
        state.set_suggestion(primary, category, models[1:], task=text)

        return RoutingDirective(
            kind=DirectiveKind.SUGGEST,
            model=primary,
            category=category,
            fallbacks=models[1:],
            reason=f"{classification.source}:{classification.matched_signal or category}",
        )

    # =========================================================================
    # TOOL CALLS
    # =========================================================================

    async def observe_tool_call(
        self,
        session_key: str,
        tool_name: str,
        arguments: Any = None,
        result: Any = None,
        error: Any = None,
    ) -> ToolCallOutcome:
        """
        React to a tool call the agent made during the turn.

        Capacity errors drive the fallback cascade; completion tools arm a
        revert for the next turn; work-open tools attach a new work item to
        the session's escalation. Other errors are returned unchanged.
        """
        state = self.store.get_or_create(session_key)
        tracking = self.config.tracking

        if error:
            if is_capacity_error(error):
                return await self._fallback(state, tool_name, error)
            return ToolCallOutcome(error=error)

        if tool_name in tracking.completion_tools:
            armed = await self._observe_completion(state, arguments)
            return ToolCallOutcome(revert_armed=armed)

        if tool_name in tracking.work_open_tools:
            work_id = await self._observe_work_opened(state, result)
            return ToolCallOutcome(details={"work_id": work_id} if work_id else {})

        return ToolCallOutcome()

    async def _observe_completion(self, state: SessionState, arguments: Any) -> bool:
        """Arm a revert if the completed work belongs to this session's escalation."""
        work_ids = extract_work_ids(arguments)

        if not work_ids or self.ledger is None:
            # Untracked: any completion ends the escalation
            if state.is_on_default():
                return False
            await self._release_work(state)
            state.arm_revert(work_ids[0] if work_ids else None)
            logger.info(f"[{state.session_key}] Work completed, revert armed for next turn")
            return True

        for work_id in work_ids:
            entry = await self._ledger_call("get", work_id)
            if entry is None:
                if work_id == state.active_work_id and not state.is_on_default():
                    state.arm_revert(work_id)
                    logger.info(f"[{state.session_key}] Active work {work_id} completed (not in ledger), revert armed")
                    return True
                continue

            if entry.model != state.current_model:
                logger.debug(
                    f"[{state.session_key}] Escalation {work_id} was on {entry.model}, "
                    f"session is on {self._model_of(state)}; ignoring"
                )
                continue

            await self._ledger_call("remove", work_id)
            state.arm_revert(work_id)
            logger.info(f"[{state.session_key}] Tracked work {work_id} completed, revert armed for next turn")
            return True

        return False

    async def _observe_work_opened(self, state: SessionState, result: Any) -> Optional[str]:
        if state.is_on_default() or state.active_work_id:
            return None

        work_id = extract_created_work_id(result)
        if not work_id:
            return None

        state.active_work_id = work_id
        state.touch()
        await self._ledger_call(
            "record",
            EscalationEntry(
                work_id=work_id,
                model=state.current_model,
                category=state.active_category or UNCLASSIFIED_CATEGORY,
                session_key=state.session_key,
            ),
        )
        logger.info(f"[{state.session_key}] Work item {work_id} attached to escalation on {state.current_model}")
        return work_id

    async def _fallback(self, state: SessionState, tool_name: str, error: Any) -> ToolCallOutcome:
        """Move to the next model in the active category's list, or surface the error."""
        category = state.active_category
        current = state.current_model

        if category is None or current is None:
            logger.warning(f"[{state.session_key}] Capacity error on {self._model_of(state)}, no fallback chain")
            return ToolCallOutcome(error=error)

        chain = self.config.models_for(category)
        if current not in chain:
            logger.warning(f"[{state.session_key}] Capacity error on {current}, not in {category} list")
            return ToolCallOutcome(error=error)

        index = chain.index(current)
        if index + 1 >= len(chain):
            logger.warning(f"[{state.session_key}] Fallback chain for {category} exhausted at {current}")
            return ToolCallOutcome(error=error, details={"exhausted": True})

        next_model = chain[index + 1]
        logger.info(f"[{state.session_key}] Capacity error on {current}, falling back to {next_model}")

        state.current_model = next_model
        state.touch()
        await self._retarget_escalation(state)

        return ToolCallOutcome(
            directive=RoutingDirective(
                kind=DirectiveKind.FALLBACK,
                model=next_model,
                category=category,
                fallbacks=chain[index + 2:],
                failed_tool=tool_name,
                reason=error_text(error)[:200],
            )
        )

    # =========================================================================
    # SESSION LIFECYCLE
    # =========================================================================

    async def end_session(self, session_key: str) -> bool:
        """Release a session's state and its open escalation record."""
        state = self.store.get(session_key)
        released = self.store.discard(session_key)

        if state is not None:
            await self._release_work(state)

        return released

    def get_state(self, session_key: str) -> Optional[SessionState]:
        return self.store.get(session_key)

    # =========================================================================
    # EXTERNAL CALLS
    # =========================================================================

    async def _retarget_escalation(self, state: SessionState) -> None:
        """Keep the ledger entry pointing at the model the session actually runs."""
        if not state.active_work_id or state.current_model is None:
            return
        await self._ledger_call(
            "record",
            EscalationEntry(
                work_id=state.active_work_id,
                model=state.current_model,
                category=state.active_category or UNCLASSIFIED_CATEGORY,
                session_key=state.session_key,
            ),
        )

    async def _release_work(self, state: SessionState) -> None:
        """Drop this session's ledger entry for its active work item, if still there."""
        if not state.active_work_id:
            return
        entry = await self._ledger_call("get", state.active_work_id)
        if entry is not None and entry.session_key == state.session_key:
            await self._ledger_call("remove", state.active_work_id)

    async def _open_work(self, state: SessionState, task: Optional[str]) -> Optional[str]:
        if self.tracker is None:
            return None

        category = state.active_category or UNCLASSIFIED_CATEGORY
        title = f"[{category}] {(task or '').strip()[:120] or 'Escalated task'}"
        description = f"Escalated to {state.current_model} (session {state.session_key})"

        try:
            return await asyncio.wait_for(
                self.tracker.open_work(title, description),
                timeout=self.config.io_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"[{state.session_key}] Opening a work item timed out, continuing untracked")
        except Exception as e:
            logger.warning(f"[{state.session_key}] Opening a work item failed, continuing untracked: {e}")
        return None

    async def _ledger_call(self, method: str, *args: Any) -> Any:
        """Run a blocking ledger method off the event loop; None on failure."""
        if self.ledger is None:
            return None

        func: Callable = getattr(self.ledger, method)
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, *args),
                timeout=self.config.io_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(f"Escalation ledger {method} timed out")
        except Exception as e:
            logger.error(f"Escalation ledger {method} failed: {e}")
        return None

    def _model_of(self, state: SessionState) -> str:
        return state.effective_model(self.config.default_model)
