"""Host hook routes: turn start, tool call observed, session end."""

import asyncio

from fastapi import APIRouter, Depends, HTTPException, Request

from api.schemas.hooks import (
    SessionEndRequest,
    SessionStateResponse,
    ToolCallRequest,
    ToolCallResponse,
    TurnStartRequest,
    TurnStartResponse,
)
from model_selector.plugin import ModelSelectorPlugin

router = APIRouter()


def get_plugin(request: Request) -> ModelSelectorPlugin:
    """The plugin instance created at startup."""
    plugin = getattr(request.app.state, "plugin", None)
    if plugin is None:
        raise HTTPException(status_code=503, detail="Model selector not initialized")
    return plugin


@router.post("/hooks/turn-start", response_model=TurnStartResponse)
async def turn_start(
    request: TurnStartRequest,
    plugin: ModelSelectorPlugin = Depends(get_plugin),
) -> TurnStartResponse:
    """Route the turn that is about to start."""
    result = await plugin.on_turn_start(request.session_key, request.messages, request.prompt)
    if result is None:
        return TurnStartResponse()
    return TurnStartResponse(prepend_context=result.prepend_context, directive=result.directive)


@router.post("/hooks/tool-call", response_model=ToolCallResponse)
async def tool_call(
    request: ToolCallRequest,
    plugin: ModelSelectorPlugin = Depends(get_plugin),
) -> ToolCallResponse:
    """Observe a finished tool call."""
    outcome = await plugin.on_tool_call(
        request.session_key,
        request.tool_name,
        request.params,
        request.result,
        request.error,
    )
    if outcome is None:
        return ToolCallResponse()
    return ToolCallResponse(
        directive=outcome.directive,
        prepend_context=outcome.prepend_context,
        error=outcome.error,
        revert_armed=outcome.revert_armed,
    )


@router.post("/hooks/session-end")
async def session_end(
    request: SessionEndRequest,
    plugin: ModelSelectorPlugin = Depends(get_plugin),
) -> dict:
    """Release a session's routing state."""
    await plugin.on_session_end(request.session_key)
    return {"status": "released", "session_key": request.session_key}


@router.get("/sessions/{session_key}", response_model=SessionStateResponse)
async def get_session(
    session_key: str,
    plugin: ModelSelectorPlugin = Depends(get_plugin),
) -> SessionStateResponse:
    """Inspect a session's routing state and its escalations."""
    state = plugin.router.get_state(session_key)
    if state is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_key}")

    escalations = []
    if plugin.router.ledger is not None:
        entries = await asyncio.to_thread(plugin.router.ledger.for_session, session_key)
        escalations = [entry.model_dump(mode="json") for entry in entries]
    return SessionStateResponse(state=state, escalations=escalations)
