"""
Task Signal Detection - Deterministic keyword rules for classification.

Categories are checked in a fixed priority order (most specific first) and
the first category with any matching signal wins. Signal sets overlap on
purpose ("audit" is both a security and an orchestration word), so the order
is part of the contract, not a detail.
"""

from typing import Optional


SIMPLE_CATEGORY = "simple"


# =============================================================================
# SIGNAL SETS
# =============================================================================

SECURITY_SIGNALS = [
    "security audit",
    "security review",
    "audit",
    "vulnerabilit",
    "pentest",
    "penetration test",
    "threat model",
    "exploit",
    "cve-",
    "xss",
    "sql injection",
    "privilege escalation",
]

CODING_SIGNALS = [
    "```",
    "write code",
    "write a script",
    "build a script",
    "create a script",
    "write a function",
    "debug",
    "fix this code",
    "refactor",
    "implement",
    "typescript",
    "javascript",
    "python",
    "bash",
    "sql",
    "api endpoint",
    "unit test",
    "pull request",
    "stack trace",
    "error:",
    "exception",
]

COMPLEX_SIGNALS = [
    "orchestrat",
    "coordinate",
    "multi-agent",
    "sub-agent",
    "spawn",
    "delegate",
    "architect",
    "system design",
    "end-to-end",
    "migrate",
    "rollout",
]

PLANNING_SIGNALS = [
    "design",
    "plan",
    "strategy",
    "roadmap",
    "research",
    "analyze",
    "evaluate",
    "compare",
    "recommend",
    "proposal",
    "rfc",
    "spec",
    "requirements",
]

DEFAULT_SIGNALS: dict[str, list[str]] = {
    "security": SECURITY_SIGNALS,
    "coding": CODING_SIGNALS,
    "complex": COMPLEX_SIGNALS,
    "planning": PLANNING_SIGNALS,
}

# Priority order: security > coding > complex > planning > simple
DEFAULT_CATEGORY_ORDER = ["security", "coding", "complex", "planning"]


def build_rules(
    signals: dict[str, list[str]],
    order: list[str],
) -> list[tuple[str, list[str]]]:
    """
    Build the ordered (category, signals) rule table.

    Signals are lower-cased once here so matching only lowers the input.
    Categories in `order` without signals are skipped.
    """
    rules = []
    for category in order:
        category_signals = [s.lower() for s in signals.get(category, []) if s]
        if category_signals:
            rules.append((category, category_signals))
    return rules


def match_rules(
    text: str,
    rules: list[tuple[str, list[str]]],
) -> Optional[tuple[str, str]]:
    """
    Return (category, signal) for the first rule with a matching signal.

    Args:
        text: Raw turn text
        rules: Ordered rule table from build_rules()

    Returns:
        The winning category and the signal that fired, or None
    """
    text_lower = text.lower()
    for category, category_signals in rules:
        for signal in category_signals:
            if signal in text_lower:
                return category, signal
    return None

