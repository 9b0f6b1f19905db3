"""
Model Selector - Enumerations

Centralized enum definitions for routing directives and classification.
"""

from enum import Enum


class DirectiveKind(str, Enum):
    """What the router asks the agent to do on this turn."""

    NOOP = "noop"  # Stay on the current model
    SUGGEST = "suggest"  # Propose a model, wait for approval
    SWITCH = "switch"  # User approved the suggestion
    AUTO_SWITCH = "auto_switch"  # Collaboration complement, no approval
    FALLBACK = "fallback"  # Capacity error, move down the category list
    REVERT = "revert"  # Tracked work finished, back to default


class ClassificationSource(str, Enum):
    """Which path produced a task category."""

    KEYWORD = "keyword"
    SEMANTIC = "semantic"
    DEFAULT = "default"
