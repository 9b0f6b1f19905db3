"""External issue trackers that hold the unit of work for an escalation."""

from model_selector.tracking.todoist import TodoistTracker

__all__ = ["TodoistTracker"]
