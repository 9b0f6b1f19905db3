"""
Model Selector - session-scoped LLM routing for conversational agents.

Suggests an upgraded model when a task needs one, switches on approval,
cascades through fallbacks on capacity errors and returns to the default
model once tracked work completes.
"""

__version__ = "3.0.0"
