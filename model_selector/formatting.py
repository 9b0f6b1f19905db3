"""
Directive Formatting - Turn routing directives into agent instructions.

The text is prepended to the agent's context for the turn. Switch-type
directives tell the agent to announce the new model with the collaboration
marker, which is what peer agents look for.
"""

from typing import Optional

from model_selector.config import SelectorConfig
from model_selector.models.enums import DirectiveKind
from model_selector.models.routing import RoutingDirective


HEADER = "MODEL ROUTING (plugin-injected):"

CATEGORY_LABELS = {
    "simple": "simple task",
    "planning": "planning/design work",
    "complex": "complex orchestration",
    "coding": "coding task",
    "security": "security audit",
}


def category_label(category: Optional[str]) -> str:
    if not category:
        return "task"
    return CATEGORY_LABELS.get(category, f"{category} task")


def _status_call(model: str) -> str:
    return f'session_status({{ model: "{model}" }})'


def format_suggestion(directive: RoutingDirective, config: SelectorConfig) -> str:
    label = category_label(directive.category)
    model = directive.model
    lines = [
        HEADER,
        f"Task detected: {label}",
        f"Suggested model: {model}",
    ]
    if directive.fallbacks:
        lines.append(f"Fallbacks if unavailable: {', '.join(directive.fallbacks)}")
    lines += [
        "",
        "INSTRUCTIONS:",
        "- Stay on the current model for now",
        "- Ask any clarifying questions you need",
    ]
    if config.announce_suggestion:
        lines.append(f'- Mention that you suggest "{model}" for this {label}')
    lines += [
        "- Wait for user approval before switching",
        f'- If user says "go ahead" or similar, call {_status_call(model)} and proceed',
        "- If user overrides, stay on current model and proceed",
    ]
    return "\n".join(lines)


def _switch_lines(model: str, config: SelectorConfig) -> list[str]:
    lines = [f"- Call {_status_call(model)} immediately"]
    if config.announce_switch:
        lines.append(f'- Announce: "{config.collaboration.marker} {model}."')
    return lines


def format_switch(directive: RoutingDirective, config: SelectorConfig) -> str:
    lines = [
        HEADER,
        "User approved model switch.",
        f"Switch to: {directive.model}",
    ]
    if directive.work_id:
        lines.append(f"Tracking work item: {directive.work_id}")
    lines += ["", "INSTRUCTIONS:"]
    lines += _switch_lines(directive.model, config)
    lines.append("- Then proceed with the task")
    return "\n".join(lines)


def format_auto_switch(directive: RoutingDirective, config: SelectorConfig) -> str:
    lines = [
        HEADER,
        f"Collaboration: peer agent is on {directive.peer_model}.",
        f"Switch to complementary model: {directive.model}",
        "",
        "INSTRUCTIONS:",
    ]
    lines += _switch_lines(directive.model, config)
    lines.append("- Bring a perspective that differs from the peer's, then proceed")
    return "\n".join(lines)


def format_fallback(directive: RoutingDirective, config: SelectorConfig) -> str:
    lines = [
        HEADER,
        "Current model hit a capacity limit.",
        f"Fallback model: {directive.model}",
        "",
        "INSTRUCTIONS:",
    ]
    lines += _switch_lines(directive.model, config)
    if directive.failed_tool:
        lines.append(f"- Retry the failed {directive.failed_tool} call")
    else:
        lines.append("- Retry the failed operation")
    return "\n".join(lines)


def format_revert(directive: RoutingDirective, config: SelectorConfig) -> str:
    done = f"Task {directive.work_id} complete." if directive.work_id else "Task complete."
    lines = [
        HEADER,
        done,
        "",
        "INSTRUCTIONS:",
        f"- Call {_status_call(config.default_model)} to return to default model",
    ]
    if config.announce_switch:
        lines.append('- Announce: "⚡ Task complete, returning to default model."')
    return "\n".join(lines)


_FORMATTERS = {
    DirectiveKind.SUGGEST: format_suggestion,
    DirectiveKind.SWITCH: format_switch,
    DirectiveKind.AUTO_SWITCH: format_auto_switch,
    DirectiveKind.FALLBACK: format_fallback,
    DirectiveKind.REVERT: format_revert,
}


def format_directive(directive: RoutingDirective, config: SelectorConfig) -> Optional[str]:
    """Render a directive, None for NOOP."""
    formatter = _FORMATTERS.get(DirectiveKind(directive.kind))
    if formatter is None:
        return None
    return formatter(directive, config)
